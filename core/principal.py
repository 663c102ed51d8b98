"""
Principal resolution.

A principal is the authenticated actor of a request: an id, an e-mail,
a role and a hostel affiliation.  It is derived per request from a
signed bearer token and handed explicitly to every scope filter and
mutation guard, which never look at ``request`` themselves.

Role and affiliation are read from the stored user rather than from
the token claims so that reassignments take effect immediately.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from django.contrib.auth import get_user_model
from rest_framework.exceptions import NotAuthenticated, PermissionDenied
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from .models import Hostel

logger = logging.getLogger(__name__)

User = get_user_model()


class Role(str, Enum):
    ADMIN = 'admin'
    WARDEN = 'warden'
    RESIDENT = 'resident'


@dataclass(frozen=True)
class _BasePrincipal:
    id: int
    email: str
    hostel_id: Optional[int] = None

    role: ClassVar[Role]


@dataclass(frozen=True)
class AdminPrincipal(_BasePrincipal):
    role: ClassVar[Role] = Role.ADMIN


@dataclass(frozen=True)
class WardenPrincipal(_BasePrincipal):
    role: ClassVar[Role] = Role.WARDEN


@dataclass(frozen=True)
class ResidentPrincipal(_BasePrincipal):
    role: ClassVar[Role] = Role.RESIDENT


Principal = Union[AdminPrincipal, WardenPrincipal, ResidentPrincipal]

_VARIANTS = {
    Role.ADMIN.value: AdminPrincipal,
    Role.WARDEN.value: WardenPrincipal,
    Role.RESIDENT.value: ResidentPrincipal,
}


def warden_hostel_id(user) -> Optional[int]:
    """A warden's hostel: their own binding, else the hostel they run."""
    if user.hostel_id:
        return user.hostel_id
    return Hostel.objects.filter(warden_id=user.id).values_list('id', flat=True).order_by('id').first()


def principal_for_user(user) -> Optional[Principal]:
    """Build the principal for a stored user, or None for an unknown role."""
    variant = _VARIANTS.get(getattr(user, 'role', None))
    if variant is None:
        return None
    if variant is WardenPrincipal:
        hostel_id = warden_hostel_id(user)
    elif variant is ResidentPrincipal:
        hostel_id = user.hostel_id
    else:
        hostel_id = None
    return variant(id=user.id, email=user.email, hostel_id=hostel_id)


def _raw_token(header) -> Optional[bytes]:
    if not header:
        return None
    if isinstance(header, str):
        header = header.encode('latin-1', errors='ignore')
    parts = header.split()
    if len(parts) != 2:
        return None
    if parts[0].decode('latin-1') not in api_settings.AUTH_HEADER_TYPES:
        return None
    return parts[1]


def authenticate_bearer(header) -> Optional[Tuple[User, AccessToken]]:
    """Validate an ``Authorization`` header value.

    Returns ``(user, token)`` or ``None`` when the header is absent or
    malformed, the signature is invalid, the token expired or the user
    no longer exists or is inactive.  Never raises.
    """
    raw = _raw_token(header)
    if raw is None:
        return None
    try:
        token = AccessToken(raw)
    except TokenError as exc:
        logger.info('Rejected bearer token: %s', exc)
        return None
    user_id = token.get(api_settings.USER_ID_CLAIM)
    if user_id is None:
        return None
    user = User.objects.filter(pk=user_id, is_active=True).first()
    if user is None:
        logger.info('Bearer token for unknown or inactive user %s', user_id)
        return None
    return user, token


def resolve_principal(header) -> Optional[Principal]:
    """Resolve an ``Authorization`` header value to a principal or None."""
    resolved = authenticate_bearer(header)
    if resolved is None:
        return None
    return principal_for_user(resolved[0])


def require_principal(request) -> Principal:
    """Return the request's principal or raise 401/403."""
    user = getattr(request, 'user', None)
    if not (user and getattr(user, 'is_authenticated', False)):
        raise NotAuthenticated()
    principal = principal_for_user(user)
    if principal is None:
        raise PermissionDenied('Unknown role')
    return principal


def claims_for_user(user) -> dict:
    """Identity claims embedded in issued tokens."""
    return {'role': user.role, 'email': user.email}
