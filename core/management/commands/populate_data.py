"""
Management command to populate the database with demo data.
"""
import random
from datetime import time, timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from core.models import Appointment, DiagnosticCenter, DiagnosticTest, Review, User
from core.services.ratings import recompute_all_ratings

DEMO_PASSWORD = 'MedBook#2024'


class Command(BaseCommand):
    help = 'Populate database with demo centers, tests, users, appointments and reviews'

    def handle(self, *args, **options):
        self.stdout.write('Creating demo data...')

        admins = self.create_center_admins()
        centers = self.create_centers(admins)
        tests = self.create_tests(centers)
        patients = self.create_patients()
        self.create_system_admin()

        appointments = self.create_appointments(patients, tests)
        self.create_reviews(appointments)
        recompute_all_ratings()

        self.stdout.write(self.style.SUCCESS('Demo data created.'))

    def _user(self, email, role, name):
        user, created = User.objects.get_or_create(
            email=email,
            defaults={
                'username': email,
                'password': make_password(DEMO_PASSWORD),
                'role': role,
                'name': name,
                'is_email_verified': True,
            }
        )
        if created:
            self.stdout.write(f'Created user: {email} ({role})')
        return user

    def create_system_admin(self):
        return self._user('admin@medbook.local', User.ROLE_ADMIN, 'System Admin')

    def create_center_admins(self):
        return [
            self._user(f'center{i}@medbook.local', User.ROLE_CENTER_ADMIN, f'Center Admin {i}')
            for i in (1, 2)
        ]

    def create_patients(self):
        return [
            self._user(f'patient{i}@medbook.local', User.ROLE_PATIENT, f'Patient {i}')
            for i in range(1, 6)
        ]

    def create_centers(self, admins):
        centers_data = [
            {
                'name': 'City Diagnostics',
                'description': 'Full service pathology and imaging lab',
                'address': {'street': '12 Main St', 'city': 'Springfield', 'state': 'IL', 'zipCode': '62701', 'country': 'USA'},
                'phone': '555-0100',
                'email': 'info@citydiagnostics.local',
                'operating_hours': {'mon-fri': '07:00-19:00', 'sat': '08:00-14:00'},
                'services': ['Blood tests', 'X-Ray', 'MRI'],
            },
            {
                'name': 'Lakeside Imaging',
                'description': 'Imaging and cardiology diagnostics',
                'address': {'street': '4 Lake Rd', 'city': 'Springfield', 'state': 'IL', 'zipCode': '62704', 'country': 'USA'},
                'phone': '555-0200',
                'email': 'hello@lakeside.local',
                'operating_hours': {'mon-sat': '08:00-18:00'},
                'services': ['CT', 'ECG', 'Ultrasound'],
            },
        ]
        centers = []
        for admin, data in zip(admins, centers_data):
            center, created = DiagnosticCenter.objects.get_or_create(name=data['name'], defaults={**data, 'admin': admin})
            centers.append(center)
            self.stdout.write(f'Center: {center.name}')
        return centers

    def create_tests(self, centers):
        catalogue = [
            ('Complete Blood Count', 'Blood', '25.00', 15),
            ('Lipid Profile', 'Blood', '40.00', 15),
            ('Chest X-Ray', 'Radiology', '60.00', 20),
            ('ECG', 'Cardiology', '35.00', 30),
        ]
        tests = []
        for center in centers:
            for name, category, price, duration in catalogue:
                test, _ = DiagnosticTest.objects.get_or_create(
                    center=center, name=name, is_active=True,
                    defaults={'category': category, 'price': price, 'duration': duration},
                )
                tests.append(test)
        return tests

    def create_appointments(self, patients, tests):
        today = timezone.localdate()
        statuses = [s for s, _ in Appointment.STATUS_CHOICES]
        appointments = []
        for patient in patients:
            for _ in range(3):
                test = random.choice(tests)
                appointments.append(Appointment.objects.create(
                    patient=patient,
                    center=test.center,
                    test=test,
                    appointment_date=today + timedelta(days=random.randint(-10, 10)),
                    appointment_time=time(random.randint(8, 17), random.choice([0, 30])),
                    status=random.choice(statuses),
                    total_amount=test.price,
                ))
        return appointments

    def create_reviews(self, appointments):
        for a in appointments:
            if a.status != Appointment.STATUS_COMPLETED:
                continue
            Review.objects.get_or_create(
                user=a.patient, appointment=a,
                defaults={'center': a.center, 'rating': random.randint(3, 5), 'comment': 'Quick and friendly.'},
            )
