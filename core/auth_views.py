"""
Authentication views and helper functions.

Registration and password recovery are confirmed with an emailed
one-time password; login returns a simplejwt access/refresh pair whose
access token carries the user's ``role`` claim.  These views live apart
from the authentication class (see ``core.authentication``) so DRF can
load that class from settings without circular imports.
"""
from __future__ import annotations

from django.contrib.auth import authenticate
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from core.apps import otp_mailer
from core.exceptions import ValidationError
from core.serializers.auth import (
    ForgotPasswordSerializer,
    LoginSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
    VerifyOtpSerializer,
)
from core.services import accounts
from core.services.accounts import format_user

from .models import User


def issue_tokens(user: User) -> dict:
    """Return ``{'token', 'refreshToken'}`` for ``user`` with the role claim set."""
    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.role
    return {'token': str(refresh.access_token), 'refreshToken': str(refresh)}


# ---------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    user, email_sent = accounts.register_user(
        name=v['name'],
        email=v['email'],
        password=v['password'],
        phone=v.get('phone', ''),
        role=v['role'],
        date_of_birth=v.get('dateOfBirth'),
        mailer=otp_mailer(),
    )
    message = 'Registration successful. Please verify your email with the OTP sent.'
    if not email_sent:
        message = 'Registration successful, but the OTP email could not be sent.'
    return Response({'success': True, 'message': message, 'userId': user.id, 'emailSent': email_sent}, status=201)

register_view.cls.throttle_scope = 'otp'


@api_view(['POST'])
@permission_classes([AllowAny])
def verify_registration_view(request):
    s = VerifyOtpSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = accounts.verify_registration(s.validated_data['userId'], s.validated_data['otp'])
    return Response({
        'success': True,
        'message': 'Email verified successfully',
        **issue_tokens(user),
        'user': format_user(user),
    })

verify_registration_view.cls.throttle_scope = 'otp'


# ---------------------------------------------------------------------
# Password recovery
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def forgot_password_view(request):
    s = ForgotPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, email_sent = accounts.request_password_reset(s.validated_data['email'], mailer=otp_mailer())
    return Response({
        'success': True,
        'message': 'Password reset OTP sent to your email' if email_sent else 'Password reset OTP could not be sent',
        'userId': user.id,
        'emailSent': email_sent,
    })

forgot_password_view.cls.throttle_scope = 'otp'


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password_view(request):
    s = ResetPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    accounts.reset_password(v['userId'], v['otp'], v['newPassword'])
    return Response({'success': True, 'message': 'Password reset successful'})

reset_password_view.cls.throttle_scope = 'otp'


# ---------------------------------------------------------------------
# Login, refresh, profile
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data.get('email')
    password = s.validated_data.get('password')
    if not email or not password:
        raise ValidationError('Email and password are required')

    user = authenticate(request, username=email, password=password)
    if not user or not user.is_email_verified:
        raise AuthenticationFailed('Invalid credentials or account not verified', code='invalid_credentials')

    return Response({'success': True, **issue_tokens(user), 'user': format_user(user)})

# DRF ScopedRateThrottle reads throttle_scope from the view class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_view(request):
    """Exchange a refresh token for a new access token."""
    raw = request.data.get('refreshToken') or request.data.get('refresh')
    if not raw:
        raise ValidationError('refreshToken is required')
    s = TokenRefreshSerializer(data={'refresh': raw})
    try:
        s.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    return Response({'success': True, 'token': s.validated_data['access']})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def profile_view(request):
    return Response({'success': True, 'user': format_user(request.user, with_centers=True)})
