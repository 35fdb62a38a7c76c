"""Core application for the MedBook backend.

This package contains models, services, serializers, views and route
registrations for diagnostic bookings, results, reviews and accounts.
"""
