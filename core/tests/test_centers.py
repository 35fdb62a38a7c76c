import pytest
from django.urls import reverse

from core.models import DiagnosticCenter
from core.tests.utils import client_for, make_center, make_test

pytestmark = pytest.mark.django_db


def test_public_catalogue_lists_active_centers_and_tests(center, blood_test):
    make_center('Closed Lab', is_active=False)
    make_test(center, name='Retired Test', is_active=False)
    anon = client_for()

    r = anon.get(reverse('centers'))
    assert r.status_code == 200
    assert [c['name'] for c in r.data['centers']] == ['City Diagnostics']
    assert r.data['centers'][0]['address']['city'] == 'Springfield'

    r = anon.get(reverse('center_tests', args=[center.id]))
    assert [t['name'] for t in r.data['tests']] == [blood_test.name]


def test_inactive_center_detail_is_not_found():
    closed = make_center('Closed Lab', is_active=False)
    assert client_for().get(reverse('center_detail', args=[closed.id])).status_code == 404


def test_center_detail_rejects_bad_id(db):
    r = client_for().get('/api/centers/abc')
    assert r.status_code == 400
    assert r.data['message'] == 'Invalid center ID format'


def test_admin_creates_center_with_admin_assignment(admin_client, center_admin):
    body = {
        'name': 'Northside Labs',
        'phone': '555-0300',
        'email': 'north@example.com',
        'address': {'city': 'Shelbyville'},
        'services': ['MRI'],
        'adminId': center_admin.id,
    }
    r = admin_client.post(reverse('centers'), body, format='json')
    assert r.status_code == 201
    assert r.data['center']['adminId'] == center_admin.id
    assert r.data['center']['rating'] == 0
    assert DiagnosticCenter.objects.get(name='Northside Labs').admin == center_admin


def test_center_admin_assignment_requires_center_admin_role(admin_client, patient):
    body = {'name': 'Bad Lab', 'phone': '1', 'email': 'bad@example.com', 'adminId': patient.id}
    r = admin_client.post(reverse('centers'), body, format='json')
    assert r.status_code == 400


def test_only_admins_write_centers(patient_client, center):
    r = patient_client.post(reverse('centers'), {'name': 'X', 'phone': '1', 'email': 'x@example.com'}, format='json')
    assert r.status_code == 403
    r = client_for().put(reverse('center_detail', args=[center.id]), {'name': 'Y'}, format='json')
    assert r.status_code == 401
