"""
Bearer token authentication.

Access tokens are issued by ``djangorestframework-simplejwt`` and carry
the user's role as a ``role`` claim (see :func:`core.auth_views.issue_tokens`).
This subclass of ``JWTAuthentication`` refuses tokens whose role claim
no longer matches the stored user, so a demoted account cannot keep
using privileges granted by an older token.  Keeping it in its own
module avoids circular imports when DRF loads authentication classes
from settings.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed


class BearerAuthentication(JWTAuthentication):
    """JWT authentication that also checks the ``role`` claim."""

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        claimed = validated_token.get('role')
        if claimed is not None and claimed != user.role:
            raise AuthenticationFailed('Token role is no longer valid', code='stale_role')
        return user
