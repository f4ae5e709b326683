# accounts/management/commands/import_donors.py
"""
Bulk-load donor accounts from a spreadsheet
Usage: python manage.py import_donors path/to/donors.xlsx [--password ...]

Expected columns: name, email, phone, blood_group, and optionally age,
latitude, longitude, address, donation_count, last_donation.
"""
import pandas as pd
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounts.models import BloodGroup

User = get_user_model()

REQUIRED_COLUMNS = ['name', 'email', 'phone', 'blood_group']


def _optional(row, column, cast):
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    return cast(value)


class Command(BaseCommand):
    help = 'Import donors from a CSV or Excel file'

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='Path to a .csv, .xls or .xlsx file')
        parser.add_argument(
            '--password',
            help='Initial password for new accounts; without it new accounts cannot log in until one is set'
        )
        parser.add_argument('--dry-run', action='store_true', help='Validate rows without saving')

    def read_frame(self, path):
        try:
            if path.lower().endswith('.csv'):
                return pd.read_csv(path)
            return pd.read_excel(path)
        except FileNotFoundError:
            raise CommandError(f'File not found: {path}')

    def handle(self, *args, **options):
        path = options['path']
        self.stdout.write(self.style.WARNING(f'Starting import from {path}...'))

        df = self.read_frame(path)
        df.columns = [str(column).strip().lower() for column in df.columns]

        missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
        if missing:
            raise CommandError(f'Missing column(s): {", ".join(missing)}')

        df = df.dropna(subset=['email'])
        self.stdout.write(f'Found {len(df)} row(s) with an e-mail address')

        created_count = 0
        updated_count = 0
        skipped_count = 0

        with transaction.atomic():
            for index, row in df.iterrows():
                line = index + 2  # header row plus 1-based numbering
                email = str(row['email']).strip().lower()
                blood_group = str(row['blood_group']).strip().upper()

                if blood_group not in BloodGroup.values:
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: invalid blood group {blood_group}'))
                    skipped_count += 1
                    continue

                try:
                    age = _optional(row, 'age', int)
                    latitude = _optional(row, 'latitude', float)
                    longitude = _optional(row, 'longitude', float)
                    donation_count = _optional(row, 'donation_count', int) or 0
                except (TypeError, ValueError) as exc:
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: {exc}'))
                    skipped_count += 1
                    continue

                if age is not None and not 18 <= age <= 65:
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: age {age} out of range (18-65)'))
                    skipped_count += 1
                    continue

                if (latitude is None) != (longitude is None):
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: latitude and longitude go together'))
                    skipped_count += 1
                    continue

                last_donation = _optional(row, 'last_donation', lambda value: pd.to_datetime(value, utc=True))
                address = _optional(row, 'address', str)

                user = User.objects.filter(email__iexact=email).first()
                created = user is None
                if created:
                    user = User(username=email, email=email)
                    if options['password']:
                        user.set_password(options['password'])
                    else:
                        user.set_unusable_password()

                user.name = str(row['name']).strip()
                user.phone = str(row['phone']).strip()
                user.blood_group = blood_group
                user.age = age
                user.latitude = latitude
                user.longitude = longitude
                user.address = (address or '').strip()
                user.donation_count = donation_count
                user.update_badges()
                user.last_donation = last_donation.to_pydatetime() if last_donation is not None else None
                user.is_donor = True
                user.role = 'donor'
                user.save()

                if created:
                    created_count += 1
                    self.stdout.write(f'✓ Created: {user.name} ({user.blood_group}) - {user.email}')
                else:
                    updated_count += 1
                    self.stdout.write(f'↻ Updated: {user.name} ({user.blood_group})')

            if options['dry_run']:
                transaction.set_rollback(True)
                self.stdout.write(self.style.WARNING('Dry run: nothing was saved'))

        self.stdout.write(
            self.style.SUCCESS(
                f'\nImport complete!\n'
                f'Created: {created_count}\n'
                f'Updated: {updated_count}\n'
                f'Skipped: {skipped_count}'
            )
        )
