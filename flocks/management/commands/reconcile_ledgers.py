"""
Flocks — Management Command: reconcile_ledgers

Re-checks every bird-count and allocation invariant and prints each
discrepancy for manual reconciliation.

Usage::

    python manage.py reconcile_ledgers
    python manage.py reconcile_ledgers --farm <uuid>

Read-only: nothing is corrected automatically.

@file flocks/management/commands/reconcile_ledgers.py
"""

from django.core.management.base import BaseCommand

from flocks.services import LedgerReconciliationService


class Command(BaseCommand):
    help = 'Report batches and houses whose counts break a ledger invariant.'

    def add_arguments(self, parser):
        parser.add_argument('--farm', dest='farm_id', default=None, help='Limit the sweep to one farm.')

    def handle(self, *args, **options):
        issues = LedgerReconciliationService.reconcile(farm_id=options['farm_id'])
        for issue in issues:
            self.stdout.write(self.style.ERROR(str(issue)))
        if issues:
            self.stdout.write(self.style.WARNING(f'{len(issues)} discrepancies found.'))
        else:
            self.stdout.write(self.style.SUCCESS('Ledgers are consistent.'))
