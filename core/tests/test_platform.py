"""Error envelope, health check and the result storage backends."""
import hashlib

import pytest
import requests
from django.core.files.base import ContentFile
from django.core.files.storage import FileSystemStorage
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIRequestFactory

from core.exceptions import UploadError, ValidationError, api_exception_handler
from core.services.storage import CloudinaryResultStorage, LocalResultStorage, validate_report_file


def test_unknown_errors_become_server_error_envelope():
    request = APIRequestFactory().get('/api/anything')
    resp = api_exception_handler(RuntimeError('boom'), {'request': request})
    assert resp.status_code == 500
    assert resp.data == {'success': False, 'message': 'boom', 'error': 'server_error'}


def test_api_errors_keep_their_code():
    resp = api_exception_handler(ValidationError('Bad thing'), {})
    assert resp.status_code == 400
    assert resp.data == {'success': False, 'message': 'Bad thing', 'error': 'validation_error'}


@pytest.mark.django_db
def test_healthz(client):
    r = client.get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'success': True, 'db': True}


def test_validate_report_file_limits(settings):
    settings.UPLOAD_MAX_MB = 1
    ok = SimpleUploadedFile('a.png', b'x', content_type='image/png')
    validate_report_file(ok)
    big = SimpleUploadedFile('b.pdf', b'x' * (1024 * 1024 + 1), content_type='application/pdf')
    with pytest.raises(ValidationError):
        validate_report_file(big)


def test_local_storage_saves_under_results(tmp_path):
    storage = LocalResultStorage(storage=FileSystemStorage(location=str(tmp_path), base_url='/media/'),
                                 base_url='https://api.example.com')
    url = storage.upload(ContentFile(b'report', name='scan.pdf'))
    assert url.startswith('https://api.example.com/media/results/')
    assert url.endswith('.pdf')


class _Response:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f'{self.status} error')

    def json(self):
        return self.payload


class _Session:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def post(self, url, data=None, files=None, timeout=None):
        self.calls.append((url, data))
        if self.exc:
            raise self.exc
        return self.response


def _cloudinary(session):
    return CloudinaryResultStorage(cloud_name='demo', api_key='key', api_secret='secret',
                                   folder='patient_results', timeout=5, session=session)


def test_cloudinary_signed_upload():
    session = _Session(_Response({'secure_url': 'https://res.cloudinary.com/demo/r.pdf', 'public_id': 'r'}))
    storage = _cloudinary(session)
    url = storage.upload(ContentFile(b'report', name='r.pdf'))
    assert url == 'https://res.cloudinary.com/demo/r.pdf'
    endpoint, data = session.calls[0]
    assert endpoint == 'https://api.cloudinary.com/v1_1/demo/auto/upload'
    expected = hashlib.sha1(f"folder=patient_results&timestamp={data['timestamp']}secret".encode()).hexdigest()
    assert data['signature'] == expected
    assert data['api_key'] == 'key'


@pytest.mark.parametrize('session', [
    _Session(exc=requests.ConnectionError('down')),
    _Session(_Response({'error': {'message': 'Invalid signature'}}, status=401)),
    _Session(_Response({'error': {'message': 'no url'}})),
])
def test_cloudinary_failures_raise_upload_error(session):
    with pytest.raises(UploadError):
        _cloudinary(session).upload(ContentFile(b'report', name='r.pdf'))
