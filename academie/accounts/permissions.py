"""
Role-based access control - one policy table consumed by every endpoint

Each operation names a capability; the table maps the capability to the
roles allowed to use it. settings.ACCESS_POLICY overrides individual
entries, settings.TRAINER_MANAGES_OWN_COURSES opens the ownable
capabilities to the trainer who teaches the course.
"""
import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from rest_framework import permissions

from academie.exceptions import AuthenticationError, AuthorizationError
from .models import Role

logger = logging.getLogger(__name__)

ALL_ROLES = frozenset(Role.values)

DEFAULT_POLICY = {
    'content.read': ALL_ROLES,
    'course.manage': frozenset({Role.ADMIN}),
    'course.delete': frozenset({Role.ADMIN}),
    'content.manage': frozenset({Role.ADMIN}),
    'domain.manage': frozenset({Role.ADMIN}),
    'enrollment.manage': frozenset({Role.ADMIN, Role.SUB_ADMIN}),
    'class.view': frozenset({Role.ADMIN, Role.SUB_ADMIN, Role.TRAINER}),
    'progress.record': frozenset({Role.STUDENT}),
    'stats.view': frozenset({Role.ADMIN, Role.SUB_ADMIN, Role.TRAINER}),
}

# Capabilities a trainer may use on their own courses when the setting allows it
OWNABLE_CAPABILITIES = frozenset({'content.manage', 'course.manage'})


def allowed_roles(capability):
    overrides = getattr(settings, 'ACCESS_POLICY', None) or {}
    if capability in overrides:
        return frozenset(overrides[capability])
    try:
        return DEFAULT_POLICY[capability]
    except KeyError:
        raise ImproperlyConfigured(f'Unknown capability: {capability}')


def _trainer_owns(user, capability, course):
    if user.role != Role.TRAINER or capability not in OWNABLE_CAPABILITIES:
        return False
    if not getattr(settings, 'TRAINER_MANAGES_OWN_COURSES', False):
        return False
    # course not resolved yet: the caller re-checks once it is
    if course is None:
        return True
    return course.teacher_id == user.id


def can(user, capability, course=None):
    if user is None or not user.is_authenticated:
        return False
    if user.role in allowed_roles(capability):
        return True
    return _trainer_owns(user, capability, course)


def authorize(user, capability, course=None):
    """Raise AuthenticationError / AuthorizationError unless user holds capability."""
    if user is None or not user.is_authenticated:
        raise AuthenticationError()
    if not can(user, capability, course):
        logger.warning('Refused %s to user %s (role %s)', capability, user.pk, user.role)
        raise AuthorizationError()


def can_view_course(user, course):
    """ADMIN and SUB_ADMIN see everything, trainers their courses, students their enrollments"""
    from courses.models import Enrollment

    if user.role in (Role.ADMIN, Role.SUB_ADMIN):
        return True
    if user.role == Role.TRAINER:
        return course.teacher_id == user.id
    if user.role == Role.STUDENT:
        return Enrollment.objects.filter(student=user, course=course).exists()
    return False


def authorize_course_read(user, course):
    authorize(user, 'content.read')
    if not can_view_course(user, course):
        logger.warning('User %s may not read course %s', user.pk, course.pk)
        raise AuthorizationError()


def visible_courses(user, queryset):
    """Restrict a Course queryset to what user may read."""
    if user.role in (Role.ADMIN, Role.SUB_ADMIN):
        return queryset
    if user.role == Role.TRAINER:
        return queryset.filter(teacher=user)
    return queryset.filter(enrollments__student=user).distinct()


class HasCapability(permissions.BasePermission):
    """
    Checks the capability the view declares for the request method.

    Views declare `capabilities = {'GET': 'content.read', 'POST': 'content.manage', ...}`.
    Methods absent from the map only require an authenticated user.
    """
    def has_permission(self, request, view):
        capabilities = getattr(view, 'capabilities', {})
        capability = capabilities.get(request.method)
        if capability is None:
            if not request.user or not request.user.is_authenticated:
                raise AuthenticationError()
            return True
        authorize(request.user, capability)
        return True
