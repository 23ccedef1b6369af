"""
Management command to seed the default designation ladder.

Usage:
    python manage.py seed_designations

    # Deactivate every existing designation before seeding
    python manage.py seed_designations --reset
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from designations.models import Designation
from designations.services import DesignationService

# (code, name, department, parent code, reporting-to code, min salary, max salary)
DEFAULT_LADDER = [
    ('MD', 'Managing Director', 'Management', None, None, 300000, 600000),
    ('GM', 'General Manager', 'Management', 'MD', 'MD', 180000, 300000),
    ('NSM', 'National Sales Manager', 'Sales', 'GM', 'GM', 120000, 180000),
    ('HR_MANAGER', 'HR Manager', 'Human Resources', 'GM', 'GM', 80000, 120000),
    ('ACCOUNTS_MANAGER', 'Accounts Manager', 'Accounts', 'GM', 'GM', 80000, 120000),
    ('RSM', 'Regional Sales Manager', 'Sales', 'NSM', 'NSM', 80000, 120000),
    ('ASM', 'Area Sales Manager', 'Sales', 'RSM', 'RSM', 50000, 80000),
    ('HR_OFFICER', 'HR Officer', 'Human Resources', 'HR_MANAGER', 'HR_MANAGER', 30000, 50000),
    ('ACCOUNTANT', 'Accountant', 'Accounts', 'ACCOUNTS_MANAGER', 'ACCOUNTS_MANAGER', 30000, 50000),
    ('MPO', 'Medical Promotion Officer', 'Sales', 'ASM', 'ASM', 25000, 40000),
    ('DELIVERY_MAN', 'Delivery Man', 'Distribution', 'ASM', 'ASM', 15000, 22000),
]


class Command(BaseCommand):
    help = 'Seed the default designation ladder'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Deactivate all existing designations before seeding',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        service = DesignationService()

        if options['reset']:
            deactivated = Designation.objects.filter(is_active=True).update(is_active=False)
            self.stdout.write(self.style.WARNING(f'Deactivated {deactivated} existing designations'))

        ids = {}
        created = 0
        skipped = 0

        for sort_order, (code, name, department, parent, reporting_to, min_salary, max_salary) in enumerate(DEFAULT_LADDER):
            existing = Designation.objects.filter(code=code).first()
            if existing:
                ids[code] = existing.pk
                if not existing.is_active:
                    service.update(existing.pk, {'is_active': True})
                    self.stdout.write(f'  Reactivated {code}')
                skipped += 1
                continue

            designation = service.create({
                'code': code,
                'name': name,
                'department': department,
                'parent_id': ids.get(parent),
                'reporting_to_id': ids.get(reporting_to),
                'sort_order': sort_order,
                'min_salary': min_salary,
                'max_salary': max_salary,
            })
            ids[code] = designation.pk
            created += 1
            self.stdout.write(f'  Created {designation}')

        self.stdout.write(
            self.style.SUCCESS(
                f'\nSeeding complete: {created} created, {skipped} already present'
            )
        )
