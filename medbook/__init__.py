"""Django project package for the MedBook diagnostic booking backend."""
