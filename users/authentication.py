"""
users/authentication.py — JWT authentication aware of revoked sessions

Every token we issue carries the user's session_version (claim "sv").
User.revoke_sessions() bumps the stored version, so access tokens minted
before a password/email change stop authenticating even though their
signature and expiry are still valid.
"""

from django.utils.translation import gettext as _
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed
from rest_framework_simplejwt.tokens import RefreshToken

SESSION_VERSION_CLAIM = "sv"


def issue_tokens(user) -> RefreshToken:
    """Refresh token (and, via .access_token, access token) bound to the current session version."""
    refresh = RefreshToken.for_user(user)
    refresh[SESSION_VERSION_CLAIM] = user.session_version
    return refresh


class SessionVersionJWTAuthentication(JWTAuthentication):
    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if validated_token.get(SESSION_VERSION_CLAIM, 0) != user.session_version:
            raise AuthenticationFailed(_("Session expired, please log in again."), code="session_revoked")
        return user
