import getpass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

User = get_user_model()


class Command(BaseCommand):
    help = 'Create an admin account (role "admin", staff access to the Django admin)'

    def add_arguments(self, parser):
        parser.add_argument('--email', help='Admin e-mail, also used as username')
        parser.add_argument('--name', default='', help='Display name')
        parser.add_argument('--phone', default='', help='Contact phone number')
        parser.add_argument('--password', help='Password (prompted when omitted)')
        parser.add_argument('--superuser', action='store_true', help='Also grant superuser rights')

    def handle(self, *args, **options):
        email = (options['email'] or input('Email: ')).strip().lower()
        if not email:
            raise CommandError('An e-mail address is required.')

        if User.objects.filter(email__iexact=email).exists():
            raise CommandError(f'User with email {email} already exists.')

        password = options['password'] or getpass.getpass('Password: ')
        if len(password) < 6:
            raise CommandError('Password must be at least 6 characters.')

        user = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            name=options['name'],
            phone=options['phone'],
            role='admin',
            is_donor=False,
            is_staff=True,
            is_superuser=options['superuser'],
        )

        self.stdout.write(self.style.SUCCESS(f'Admin {user.email} created successfully!'))
