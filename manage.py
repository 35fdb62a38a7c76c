#!/usr/bin/env python
"""
Command line entry point for the MedBook backend.  Points Django at
``medbook.settings`` and hands over to its management utility, e.g.
``python manage.py migrate`` or ``python manage.py recompute_ratings``.
"""
import os
import sys


def main() -> None:
    """Run administrative tasks."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'medbook.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError("Django is not installed in this environment.") from exc
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
