"""
Bearer token authentication for the API.

The heavy lifting lives in :mod:`core.principal`; this class only
adapts it to Django REST framework.  Unlike simplejwt's stock
``JWTAuthentication`` it never raises: an absent, forged or expired
token leaves the request anonymous and the view's permission classes
answer with 401.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication

from .principal import authenticate_bearer


class PrincipalAuthentication(JWTAuthentication):
    """JWT authentication that treats any invalid credential as anonymous.

    ``authenticate_header`` is inherited so unauthenticated requests
    receive ``401`` with a ``WWW-Authenticate: Bearer`` challenge.
    """

    def authenticate(self, request):
        return authenticate_bearer(self.get_header(request))
