"""
Authentication views.

Registration, e-mail/password login, the current-user endpoint, JWT
refresh and logout, and the demo account seeding endpoint.  Tokens are
simplejwt tokens carrying ``role`` and ``email`` claims next to the
user id; the resolver in :mod:`core.principal` re-reads role and hostel
from the database on every request.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed, PermissionDenied, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from core.exceptions import NotImplementedYet
from core.principal import claims_for_user, principal_for_user
from core.serializers.auth import LoginSerializer, RegisterSerializer
from core.services.audit import log_action
from core.services.demo import seed_demo_users
from core.services.users import register_user
from core.views.users import serialize_user

logger = logging.getLogger(__name__)

User = get_user_model()


def issue_tokens(user) -> RefreshToken:
    refresh = RefreshToken.for_user(user)
    for claim, value in claims_for_user(user).items():
        refresh[claim] = value
    return refresh


def _token_payload(user, message: str) -> dict:
    refresh = issue_tokens(user)
    return {
        'ok': True,
        'message': message,
        'token': str(refresh.access_token),
        'refresh': str(refresh),
        'userId': user.id,
        'user': serialize_user(user),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """
    Create an account and log it in.

    Accepts ``name``, ``email``, ``password`` and optionally ``role``.
    The role is only honoured when the caller is an authenticated admin.
    """
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    registrar = None
    if request.user and request.user.is_authenticated:
        registrar = principal_for_user(request.user)
    user = register_user(name=vd['name'], email=vd['email'], password=vd['password'],
                         role=vd.get('role'), registrar=registrar)
    return Response(_token_payload(user, 'User registered successfully'))

register_view.cls.throttle_scope = 'register'


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """E-mail/password login.  Any ``role`` sent along is ignored."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']
    password = s.validated_data['password']

    user = User.objects.filter(email__iexact=email).first()
    if not user or not user.is_active or not user.check_password(password):
        logger.info('Failed login for %s from %s', email, request.META.get('REMOTE_ADDR'))
        log_action(user_id=user.id if user else None, action='login', object_type='user',
                   object_id=user.id if user else None,
                   detail={'result': 'fail', 'email': email, 'ip': request.META.get('REMOTE_ADDR')})
        raise AuthenticationFailed('Invalid credentials')

    log_action(user_id=user.id, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})
    return Response(_token_payload(user, 'Login successful'))

login_view.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response({'ok': True, 'user': serialize_user(request.user)})


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    s = TokenRefreshSerializer(data=request.data)
    try:
        s.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    data = dict(s.validated_data)
    data['token'] = data.pop('access')
    return Response({'ok': True, **data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist one of the caller's refresh tokens, or all of them."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            token = RefreshToken(refresh)
        except TokenError as e:
            raise ValidationError({'refresh': [str(e)]})
        if str(token.get(api_settings.USER_ID_CLAIM)) != str(request.user.id):
            raise PermissionDenied('Token belongs to another user')
        token.blacklist()
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    log_action(user_id=request.user.id, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})


@api_view(['POST'])
@permission_classes([AllowAny])
def seed_demo_users_view(request):
    if not settings.DEMO_SEED_ENABLE:
        raise NotImplementedYet('Demo seeding is disabled')
    created = seed_demo_users()
    if not created:
        return Response({'ok': True, 'message': 'Demo users already exist', 'users': []})
    return Response({
        'ok': True,
        'message': 'Demo users seeded successfully',
        'users': [{'name': u.name, 'email': u.email, 'role': u.role} for u in created],
    })
