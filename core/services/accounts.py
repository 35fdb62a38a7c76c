"""
Account registration and password recovery backed by email OTPs.

The mailer is passed in by the caller (see :func:`core.apps.otp_mailer`)
so tests can substitute their own.  Delivery failures never abort a
registration; the caller is told whether the email went out.
"""
import logging

from django.db import transaction

from core.exceptions import Conflict, NotFound
from core.models import User
from core.services import otp

logger = logging.getLogger(__name__)


def format_user(user: User, *, with_centers: bool = False) -> dict:
    data = {
        'id': user.id,
        'name': user.display_name,
        'email': user.email,
        'phone': user.phone,
        'role': user.role,
        'dateOfBirth': user.date_of_birth.isoformat() if user.date_of_birth else None,
        'isEmailVerified': user.is_email_verified,
    }
    if with_centers:
        data['centers'] = [{'id': c.id, 'name': c.name} for c in user.managed_centers.order_by('id')]
    return data


def register_user(*, name, email, password, mailer, phone='', role=User.ROLE_PATIENT, date_of_birth=None):
    """Create (or refresh an unverified) account and email a registration OTP.

    Returns ``(user, email_sent)``.
    """
    with transaction.atomic():
        user = User.objects.select_for_update().filter(email__iexact=email).first()
        if user and user.is_email_verified:
            raise Conflict('User already exists')
        if user is None:
            user = User(username=email, email=email)
        user.name = name
        user.phone = phone or ''
        user.role = role
        user.date_of_birth = date_of_birth
        user.is_email_verified = False
        user.set_password(password)
        user.save()
        code = otp.issue_otp(user, User.OTP_REGISTRATION)

    email_sent = mailer.send_code(user.email, code, User.OTP_REGISTRATION)
    if not email_sent:
        logger.warning('Registration OTP for user %s was not delivered', user.id)
    return user, email_sent


def _user_by_id(user_id) -> User:
    user = User.objects.filter(id=user_id).first()
    if not user:
        raise NotFound('User not found')
    return user


def verify_registration(user_id, code, *, now=None) -> User:
    user = _user_by_id(user_id)
    otp.verify_otp(user, code, User.OTP_REGISTRATION, now=now)
    user.is_email_verified = True
    otp.clear_otp(user, commit=False)
    user.save(update_fields=['is_email_verified'] + otp.OTP_FIELDS)
    logger.info('User %s verified their email', user.id)
    return user


def request_password_reset(email, *, mailer) -> tuple[User, bool]:
    user = User.objects.filter(email__iexact=email, is_email_verified=True).first()
    if not user:
        raise NotFound('User not found or not verified')
    code = otp.issue_otp(user, User.OTP_PASSWORD_RESET)
    return user, mailer.send_code(user.email, code, User.OTP_PASSWORD_RESET)


def reset_password(user_id, code, new_password, *, now=None) -> User:
    user = _user_by_id(user_id)
    otp.verify_otp(user, code, User.OTP_PASSWORD_RESET, now=now)
    user.set_password(new_password)
    otp.clear_otp(user, commit=False)
    user.save(update_fields=['password'] + otp.OTP_FIELDS)
    logger.info('Password reset for user %s', user.id)
    return user
