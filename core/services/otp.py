"""
One-time password issue and verification.

Codes are numeric, ``settings.OTP_LENGTH`` digits long and valid for
``settings.OTP_TTL_MINUTES``.  Only a hash of the code is stored on the
user; issuing a new code overwrites any previous one.
"""
import logging
import secrets
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.utils import timezone

from core.exceptions import ValidationError
from core.models import User

logger = logging.getLogger(__name__)

OTP_FIELDS = ['otp_code', 'otp_expires_at', 'otp_purpose']


def generate_code(length: Optional[int] = None) -> str:
    length = length or settings.OTP_LENGTH
    return ''.join(str(secrets.randbelow(10)) for _ in range(length))


def issue_otp(user: User, purpose: str, *, now=None) -> str:
    """Store a fresh code for ``purpose`` on ``user`` and return it in clear."""
    now = now or timezone.now()
    code = generate_code()
    user.otp_code = make_password(code)
    user.otp_expires_at = now + timedelta(minutes=settings.OTP_TTL_MINUTES)
    user.otp_purpose = purpose
    if user.pk:
        user.save(update_fields=OTP_FIELDS)
    logger.info('Issued %s OTP for user %s', purpose, user.pk)
    return code


def clear_otp(user: User, *, commit: bool = True) -> None:
    user.otp_code = ''
    user.otp_expires_at = None
    user.otp_purpose = ''
    if commit:
        user.save(update_fields=OTP_FIELDS)


def is_valid_otp(user: User, code: str, *, now=None) -> bool:
    now = now or timezone.now()
    if not user.otp_code or not user.otp_expires_at or not code:
        return False
    if now > user.otp_expires_at:
        return False
    return check_password(str(code), user.otp_code)


def verify_otp(user: User, code: str, purpose: str, *, now=None) -> None:
    """Raise :class:`ValidationError` unless ``code`` is the live code for ``purpose``.

    The stored code is not cleared here; callers clear it together with
    whatever state change the verification unlocks.
    """
    if user.otp_purpose != purpose:
        raise ValidationError('Invalid OTP type')
    if not is_valid_otp(user, code, now=now):
        logger.info('Rejected %s OTP for user %s', purpose, user.pk)
        raise ValidationError('Invalid or expired OTP')
