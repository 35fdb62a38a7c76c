"""
Integration tests for the appointment endpoints.

These exercise booking, ownership rules for patients, the status table
and center scoping for administrators.  They use Django REST
Framework's APIClient within the APITestCase base class.
"""
from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import Appointment, AppointmentTransition, User
from .utils import client_for, make_appointment, make_center, make_test, make_user


class AppointmentAPITests(APITestCase):
    def setUp(self) -> None:
        self.patient = make_user('pat@example.com')
        self.other_patient = make_user('other@example.com')
        self.lab_admin = make_user('lab@example.com', User.ROLE_CENTER_ADMIN)
        self.other_lab_admin = make_user('lab2@example.com', User.ROLE_CENTER_ADMIN)
        self.admin = make_user('root@example.com', User.ROLE_ADMIN)

        self.center = make_center('City Diagnostics', admin=self.lab_admin)
        self.other_center = make_center('Lakeside Imaging', admin=self.other_lab_admin)
        self.test = make_test(self.center, price='25.00')
        self.other_test = make_test(self.other_center, name='Chest X-Ray', price='60.00')

        self.patient_client = client_for(self.patient)

    def _book(self, **overrides):
        body = {
            'center': self.center.id,
            'test': self.test.id,
            'appointmentDate': '2030-02-01',
            'appointmentTime': '09:30',
            'notes': 'fasting',
        }
        body.update(overrides)
        return self.patient_client.post(reverse('appointment_create'), body, format='json')

    # -----------------------------------------------------------------
    # Booking
    # -----------------------------------------------------------------
    def test_booking_snapshots_price(self):
        resp = self._book()
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertTrue(resp.data['success'])
        data = resp.data['appointment']
        self.assertEqual(data['status'], 'scheduled')
        self.assertEqual(data['totalAmount'], 25.0)
        self.assertEqual(data['appointmentTime'], '09:30')
        self.assertEqual(data['center']['id'], self.center.id)

        # A later price change does not touch the booked amount
        self.test.price = Decimal('99.00')
        self.test.save()
        appointment = Appointment.objects.get(id=data['id'])
        self.assertEqual(appointment.total_amount, Decimal('25.00'))

    def test_booking_requires_all_fields(self):
        resp = self._book(appointmentTime=None)
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data, {'success': False, 'message': 'All fields are required', 'error': 'validation_error'})

    def test_booking_test_of_another_center_is_not_found(self):
        resp = self._book(test=self.other_test.id)
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data['message'], 'Test not found')

    def test_booking_inactive_test_is_not_found(self):
        self.test.is_active = False
        self.test.save()
        resp = self._book()
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_only_patients_can_book(self):
        resp = client_for(self.lab_admin).post(reverse('appointment_create'), {}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(resp.data['success'])

    def test_anonymous_booking_is_rejected(self):
        resp = self.client.post(reverse('appointment_create'), {}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    # -----------------------------------------------------------------
    # Patient views
    # -----------------------------------------------------------------
    def test_my_appointments_only_lists_own_newest_first(self):
        from datetime import date
        older = make_appointment(self.patient, self.test, appointment_date=date(2030, 1, 1))
        newer = make_appointment(self.patient, self.test, appointment_date=date(2030, 3, 1))
        make_appointment(self.other_patient, self.test)

        resp = self.patient_client.get(reverse('my_appointments'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([a['id'] for a in resp.data['appointments']], [newer.id, older.id])

    def test_my_results_lists_completed_and_confirmed(self):
        done = make_appointment(self.patient, self.test, status='completed')
        confirmed = make_appointment(self.patient, self.test, status='confirmed')
        make_appointment(self.patient, self.test, status='cancelled')
        make_appointment(self.patient, self.test, status='scheduled')

        resp = self.patient_client.get(reverse('my_results'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual({a['id'] for a in resp.data['appointments']}, {done.id, confirmed.id})

    def test_patient_cannot_update_someone_elses_appointment(self):
        a = make_appointment(self.other_patient, self.test)
        url = reverse('appointment_detail', args=[a.id])
        resp = self.patient_client.put(url, {'status': 'cancelled'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        a.refresh_from_db()
        self.assertEqual(a.status, 'scheduled')

    def test_patient_can_cancel_and_transition_is_recorded(self):
        a = make_appointment(self.patient, self.test)
        resp = self.patient_client.put(reverse('appointment_detail', args=[a.id]), {'status': 'cancelled'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['appointment']['status'], 'cancelled')
        t = AppointmentTransition.objects.get(appointment=a)
        self.assertEqual((t.from_status, t.to_status, t.operator_id), ('scheduled', 'cancelled', self.patient.id))

    def test_patient_cannot_confirm(self):
        a = make_appointment(self.patient, self.test)
        resp = self.patient_client.put(reverse('appointment_detail', args=[a.id]), {'status': 'confirmed'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_patient_reschedule(self):
        a = make_appointment(self.patient, self.test)
        resp = self.patient_client.put(
            reverse('appointment_detail', args=[a.id]),
            {'appointmentDate': '2030-05-05', 'appointmentTime': '14:00'},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['appointment']['appointmentDate'], '2030-05-05')
        self.assertEqual(resp.data['appointment']['appointmentTime'], '14:00')

    def test_cannot_reschedule_cancelled_appointment(self):
        a = make_appointment(self.patient, self.test, status='cancelled')
        resp = self.patient_client.put(
            reverse('appointment_detail', args=[a.id]), {'appointmentDate': '2030-05-05'}, format='json'
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error'], 'invalid_transition')

    def test_delete_completed_is_refused(self):
        a = make_appointment(self.patient, self.test, status='completed')
        resp = self.patient_client.delete(reverse('appointment_detail', args=[a.id]))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['message'], 'Cannot delete completed appointments')
        self.assertTrue(Appointment.objects.filter(id=a.id).exists())

    def test_delete_own_scheduled(self):
        a = make_appointment(self.patient, self.test)
        resp = self.patient_client.delete(reverse('appointment_detail', args=[a.id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(Appointment.objects.filter(id=a.id).exists())

    def test_delete_validates_id_format(self):
        resp = self.patient_client.delete('/api/appointments/not-a-number')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['message'], 'Invalid appointment ID format')

    def test_delete_foreign_appointment_is_not_found(self):
        a = make_appointment(self.other_patient, self.test)
        resp = self.patient_client.delete(reverse('appointment_detail', args=[a.id]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    # -----------------------------------------------------------------
    # Center view
    # -----------------------------------------------------------------
    def test_center_admin_sees_only_own_center(self):
        mine = make_appointment(self.patient, self.test)
        make_appointment(self.patient, self.other_test)
        # A foreign center id in the path is ignored for center admins
        url = reverse('center_appointments_by_id', args=[self.other_center.id])
        resp = client_for(self.lab_admin).get(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['center']['id'], self.center.id)
        self.assertEqual([a['id'] for a in resp.data['appointments']], [mine.id])
        self.assertEqual(resp.data['appointments'][0]['patient']['email'], 'pat@example.com')

    def test_center_list_status_filter_and_pagination(self):
        from datetime import date
        for day in (1, 2, 3):
            make_appointment(self.patient, self.test, appointment_date=date(2030, 4, day))
        make_appointment(self.patient, self.test, status='cancelled')
        resp = client_for(self.lab_admin).get(reverse('center_appointments'), {'status': 'scheduled', 'page': 2, 'pageSize': 2})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['total'], 3)
        self.assertEqual([a['appointmentDate'] for a in resp.data['appointments']], ['2030-04-03'])

    def test_center_admin_without_center_is_forbidden(self):
        lonely = make_user('lonely@example.com', User.ROLE_CENTER_ADMIN)
        resp = client_for(lonely).get(reverse('center_appointments'))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_must_name_a_center(self):
        admin_client = client_for(self.admin)
        self.assertEqual(admin_client.get(reverse('center_appointments')).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            admin_client.get(reverse('center_appointments_by_id', args=[999999])).status_code,
            status.HTTP_404_NOT_FOUND,
        )
        resp = admin_client.get(reverse('center_appointments'), {'centerId': self.other_center.id})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['center']['id'], self.other_center.id)

    def test_patient_cannot_list_center(self):
        resp = self.patient_client.get(reverse('center_appointments'))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    # -----------------------------------------------------------------
    # Status updates
    # -----------------------------------------------------------------
    def test_center_admin_confirms(self):
        a = make_appointment(self.patient, self.test)
        resp = client_for(self.lab_admin).put(
            reverse('appointment_status', args=[a.id]), {'status': 'confirmed', 'notes': 'bring ID'}, format='json'
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        a.refresh_from_db()
        self.assertEqual(a.status, 'confirmed')
        self.assertEqual(a.notes, 'bring ID')
        self.assertEqual(a.transitions.count(), 1)

    def test_completed_is_terminal(self):
        a = make_appointment(self.patient, self.test, status='completed')
        resp = client_for(self.admin).put(reverse('appointment_status', args=[a.id]), {'status': 'scheduled'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data['error'], 'invalid_transition')
        a.refresh_from_db()
        self.assertEqual(a.status, 'completed')

    def test_cancel_records_reason(self):
        a = make_appointment(self.patient, self.test, status='confirmed')
        resp = client_for(self.admin).put(
            reverse('appointment_status', args=[a.id]),
            {'status': 'cancelled', 'cancellationReason': 'machine down'},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['appointment']['cancellationReason'], 'machine down')

    def test_unknown_status_is_rejected(self):
        a = make_appointment(self.patient, self.test)
        resp = client_for(self.admin).put(reverse('appointment_status', args=[a.id]), {'status': 'lost'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_center_admin_gets_not_found(self):
        a = make_appointment(self.patient, self.test)
        resp = client_for(self.other_lab_admin).put(
            reverse('appointment_status', args=[a.id]), {'status': 'confirmed'}, format='json'
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_patient_cannot_use_status_endpoint(self):
        a = make_appointment(self.patient, self.test)
        resp = self.patient_client.put(reverse('appointment_status', args=[a.id]), {'status': 'confirmed'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
