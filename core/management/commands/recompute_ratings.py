from django.core.cache import cache
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from core.models import DiagnosticCenter
from core.services.ratings import recompute_all_ratings
from core.services.reviews import cache_key


class Command(BaseCommand):
    help = "Re-derive every center's rating and review count from its reviews; drop cached review lists."

    def add_arguments(self, parser):
        parser.add_argument('--center', type=int, help='Only recompute this center id')

    def handle(self, *args, **options):
        center_id = options.get('center')
        if center_id is not None and not DiagnosticCenter.objects.filter(id=center_id).exists():
            raise CommandError(f'Diagnostic center {center_id} does not exist')

        updated = recompute_all_ratings(center_id)

        ids = [center_id] if center_id is not None else DiagnosticCenter.objects.values_list('id', flat=True)
        cache.delete_many([cache_key(pk) for pk in ids])

        self.stdout.write(self.style.SUCCESS(f"Recomputed {updated} centers at {timezone.now()}"))
