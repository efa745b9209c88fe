"""
Authentication endpoints
Email/password login issuing a DRF token, logout, and the current profile
"""
import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from academie.exceptions import AuthenticationError, AuthorizationError
from .models import User
from .serializers import LoginSerializer, UserSerializer

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """
    Login endpoint for all roles

    Request body:
    {
        "email": "user@example.com",
        "password": "password123"
    }

    Response:
    {
        "success": true,
        "token": "<token key>",
        "user": {"id": 1, "email": "...", "name": "...", "role": "ADMIN|SUB_ADMIN|TRAINER|STUDENT", ...}
    }
    """
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email'].strip().lower()
    password = serializer.validated_data['password']

    try:
        user = User.objects.get(email__iexact=email)
    except User.DoesNotExist:
        raise AuthenticationError('Email ou mot de passe invalide')

    if not user.check_password(password):
        raise AuthenticationError('Email ou mot de passe invalide')

    if not user.is_active:
        raise AuthorizationError('Votre compte est désactivé. Contactez un administrateur.')

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    token, _ = Token.objects.get_or_create(user=user)
    logger.info('User %s logged in (%s)', user.pk, user.role)

    return Response({
        'success': True,
        'token': token.key,
        'user': UserSerializer(user).data,
    }, status=status.HTTP_200_OK)


@api_view(['POST'])
def logout(request):
    """Revoke the caller's token"""
    Token.objects.filter(user=request.user).delete()
    return Response(
        {'success': True, 'message': 'Déconnexion réussie'},
        status=status.HTTP_200_OK
    )


@api_view(['GET'])
def me(request):
    return Response(UserSerializer(request.user).data)
