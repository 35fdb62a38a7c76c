from django.apps import AppConfig, apps
from django.conf import settings
from django.utils.module_loading import import_string


class CoreConfig(AppConfig):
    """Application config; also owns the shared external collaborators.

    The result storage backend and the OTP mailer are constructed once
    when Django starts and are passed explicitly into the services that
    need them (see :func:`result_storage` and :func:`otp_mailer`).
    """
    name = 'core'
    default_auto_field = 'django.db.models.BigAutoField'

    result_storage = None
    otp_mailer = None

    def ready(self):
        from core import signals  # noqa: F401

        self.result_storage = import_string(settings.RESULT_STORAGE_BACKEND)()
        self.otp_mailer = import_string(settings.OTP_MAILER_CLASS)()


def result_storage():
    return apps.get_app_config('core').result_storage


def otp_mailer():
    return apps.get_app_config('core').otp_mailer
