"""
Email delivery of one-time passwords.

:class:`OtpMailer` is built once by :class:`core.apps.CoreConfig` and
handed to the auth views; delivery failures are logged and reported to
the caller as ``False`` instead of being raised.
"""
import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

SUBJECTS = {
    'registration': 'Verify Your Registration',
    'password_reset': 'Password Reset OTP',
}

BODIES = {
    'registration': 'Your registration OTP is: {code}. This OTP will expire in {ttl} minutes.',
    'password_reset': 'Your password reset OTP is: {code}. This OTP will expire in {ttl} minutes.',
}


class OtpMailer:
    def __init__(self, from_email=None, ttl_minutes=None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.ttl_minutes = ttl_minutes or settings.OTP_TTL_MINUTES

    def send_code(self, email: str, code: str, purpose: str = 'registration') -> bool:
        subject = SUBJECTS.get(purpose, SUBJECTS['registration'])
        body = BODIES.get(purpose, BODIES['registration']).format(code=code, ttl=self.ttl_minutes)
        try:
            send_mail(subject, body, self.from_email, [email], fail_silently=False)
        except Exception:
            logger.exception('Failed to send %s OTP email to %s', purpose, email)
            return False
        logger.info('OTP email (%s) sent to %s', purpose, email)
        return True
