"""
Result report storage backends.

A backend exposes ``upload(file) -> str`` returning a public URL and
raises :class:`core.exceptions.UploadError` when the artifact cannot be
stored.  The active backend is chosen by ``settings.RESULT_STORAGE_BACKEND``
and constructed once in :meth:`core.apps.CoreConfig.ready`.
"""
import datetime
import hashlib
import logging
import os
import time
import uuid

import requests
from django.conf import settings
from django.core.files.storage import default_storage

from core.exceptions import UploadError, ValidationError

logger = logging.getLogger(__name__)


def validate_report_file(f) -> None:
    """Enforce ``UPLOAD_MAX_MB`` and ``ALLOWED_UPLOAD_TYPES`` on an uploaded file."""
    size_mb = (getattr(f, 'size', 0) or 0) / (1024 * 1024)
    if size_mb > settings.UPLOAD_MAX_MB:
        raise ValidationError('File too large')
    ctype = getattr(f, 'content_type', '') or ''
    if not any(ctype.startswith(prefix) for prefix in settings.ALLOWED_UPLOAD_TYPES):
        raise ValidationError('Unsupported file type')


def _report_path(filename: str) -> str:
    ext = os.path.splitext(filename or '')[1]
    return f"results/{datetime.date.today().strftime('%Y/%m')}/{uuid.uuid4().hex}{ext}"


class LocalResultStorage:
    """Stores reports through Django's default file storage (MEDIA_ROOT)."""

    def __init__(self, storage=None, base_url=None):
        self.storage = storage or default_storage
        self.base_url = base_url

    def upload(self, f) -> str:
        try:
            name = self.storage.save(_report_path(getattr(f, 'name', '')), f)
        except OSError as e:
            logger.error('Local report storage failed: %s', e)
            raise UploadError('Failed to store the report') from e
        url = self.storage.url(name)
        if self.base_url and url.startswith('/'):
            url = self.base_url.rstrip('/') + url
        return url


class CloudinaryResultStorage:
    """Signed uploads to Cloudinary's REST upload API."""

    API_URL = 'https://api.cloudinary.com/v1_1/{cloud}/auto/upload'

    def __init__(self, cloud_name=None, api_key=None, api_secret=None, folder=None, timeout=None, session=None):
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret or settings.CLOUDINARY_API_SECRET
        self.folder = folder or settings.CLOUDINARY_FOLDER
        self.timeout = timeout or settings.CLOUDINARY_TIMEOUT
        self.session = session or requests.Session()

    def sign(self, params: dict) -> str:
        to_sign = '&'.join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha1((to_sign + self.api_secret).encode('utf-8')).hexdigest()

    def upload(self, f) -> str:
        params = {'folder': self.folder, 'timestamp': int(time.time())}
        data = {**params, 'api_key': self.api_key, 'signature': self.sign(params)}
        files = {'file': (getattr(f, 'name', 'report'), f, getattr(f, 'content_type', None) or 'application/octet-stream')}
        try:
            r = self.session.post(self.API_URL.format(cloud=self.cloud_name), data=data, files=files, timeout=self.timeout)
            r.raise_for_status()
            payload = r.json()
        except (requests.RequestException, ValueError) as e:
            logger.error('Cloudinary upload failed: %s', e)
            raise UploadError('Failed to upload to Cloudinary') from e
        url = payload.get('secure_url')
        if not url:
            logger.error('Cloudinary response without secure_url: %s', payload.get('error'))
            raise UploadError('Failed to upload to Cloudinary')
        logger.info('Uploaded report to Cloudinary: %s', payload.get('public_id'))
        return url
