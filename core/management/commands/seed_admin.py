# core/management/commands/seed_admin.py
from django.core.management.base import BaseCommand

from core.models import User

ADMIN_EMAIL = "admin@hospital.local"
DEFAULT_PASSWORD = "ChangeMe!2024"


class Command(BaseCommand):
    help = "Create the default administrator account if it does not exist (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default=DEFAULT_PASSWORD, help="Password for a newly created admin")
        parser.add_argument("--email", default=ADMIN_EMAIL)

    def handle(self, *args, **opts):
        email = opts["email"].strip().lower()
        if User.objects.filter(email__iexact=email).exists():
            self.stdout.write(self.style.WARNING(f"exists: {email}"))
            return
        User.objects.create_user(
            username=email,
            email=email,
            password=opts["password"],
            first_name="System",
            last_name="Administrator",
            role=User.ROLE_ADMIN,
            status=User.STATUS_ACTIVE,
            is_confirmed=True,
            is_staff=True,
            is_superuser=True,
        )
        self.stdout.write(self.style.SUCCESS(f"ok: {email} (ADMIN)"))
