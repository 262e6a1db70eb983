from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import DecimalField, Sum
from django.db.models.functions import Coalesce

from textile.models import Inventory


class Command(BaseCommand):
    help = 'Recalculate inventory quantities from their recorded transactions.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report the recalculated quantities without saving them.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        changed = 0
        for item in Inventory.objects.order_by('item_code'):
            total = item.transactions.aggregate(
                total=Coalesce(Sum('quantity'), 0, output_field=DecimalField())
            )['total']
            if total < 0:
                total = 0
            if total == item.current_quantity:
                continue
            changed += 1
            if not dry_run:
                with transaction.atomic():
                    item.current_quantity = total
                    item.save(update_fields=['current_quantity', 'updated_at'])
            self.stdout.write(
                self.style.SUCCESS(f'Inventory {item.item_code} quantity updated to {total}')
            )
        suffix = ' (dry run)' if dry_run else ''
        self.stdout.write(self.style.SUCCESS(f'{changed} inventory items recalculated{suffix}'))
