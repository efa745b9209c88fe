"""
Platform error taxonomy and the DRF exception handler that renders it.

Every error leaves the API as
    {"success": false, "error": "<message en français>", "code": "<reason>"}
with an optional "details" entry for field-level validation errors.
"""
import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class PlatformError(exceptions.APIException):
    """Base class for errors raised by the platform's own services."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Erreur serveur'
    default_code = 'server_error'


class AuthenticationError(PlatformError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Non autorisé'
    default_code = 'unauthenticated'


class AuthorizationError(PlatformError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Accès refusé'
    default_code = 'unauthorized'


class ValidationError(PlatformError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Données invalides'
    default_code = 'validation_failed'


class NotFoundError(PlatformError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Ressource introuvable'
    default_code = 'not_found'


class ConflictError(PlatformError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflit avec l\'état actuel de la ressource'
    default_code = 'conflict'


class PersistenceError(PlatformError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Erreur lors de l\'accès aux données'
    default_code = 'persistence_failed'


def _normalize(exc):
    """Map Django and DRF built-in exceptions onto the platform taxonomy."""
    if isinstance(exc, PlatformError):
        return exc, None
    if isinstance(exc, Http404):
        return NotFoundError(), None
    if isinstance(exc, DjangoPermissionDenied):
        return AuthorizationError(), None
    if isinstance(exc, exceptions.NotAuthenticated):
        return AuthenticationError(), None
    if isinstance(exc, exceptions.AuthenticationFailed):
        return AuthenticationError('Token invalide'), None
    if isinstance(exc, exceptions.PermissionDenied):
        return AuthorizationError(), None
    if isinstance(exc, exceptions.NotFound):
        return NotFoundError(), None
    if isinstance(exc, exceptions.ValidationError):
        return ValidationError(), exc.detail
    if isinstance(exc, exceptions.ParseError):
        return ValidationError('Requête invalide'), None
    if isinstance(exc, DatabaseError):
        return PersistenceError(), None
    return exc, None


def platform_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER producing the platform's structured error body."""
    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'

    if isinstance(exc, DatabaseError):
        logger.exception('Storage failure in %s: %s', view_name, exc)

    exc, details = _normalize(exc)

    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = getattr(exc, 'detail', None)
    codes = exc.get_codes() if hasattr(exc, 'get_codes') else None
    body = {
        'success': False,
        'error': str(detail) if detail is not None else 'Erreur serveur',
        'code': codes if isinstance(codes, str) else 'error',
    }
    if details is not None:
        body['details'] = details

    if response.status_code >= 500:
        logger.error('%s failed: %s (%s)', view_name, body['error'], body['code'])

    return Response(body, status=response.status_code, headers=_passthrough_headers(response))


def _passthrough_headers(response):
    headers = {}
    for name in ('Allow', 'Retry-After', 'WWW-Authenticate'):
        if response.has_header(name):
            headers[name] = response[name]
    return headers
