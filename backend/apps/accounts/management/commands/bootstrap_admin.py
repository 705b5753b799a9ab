"""
Management command to create (or promote) the first platform admin.

Prints a freshly issued API key for the admin, since the API has no
login flow of its own.
Example: ./manage.py bootstrap_admin --email admin@clinic.example --name "Site Admin"
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import User
from apps.accounts.services import generate_api_key, get_or_create_user_by_email


class Command(BaseCommand):
    help = "Create or promote an ADMIN user and print a new API key for it"

    def add_arguments(self, parser):
        parser.add_argument("--email", required=True, help="Admin email address")
        parser.add_argument("--name", default="", help="Display name")
        parser.add_argument(
            "--key-name",
            default="bootstrap",
            help="Label for the issued API key (default: bootstrap)",
        )

    def handle(self, *args, **options):
        with transaction.atomic():
            user, created = get_or_create_user_by_email(options["email"], name=options["name"])
            user.role = User.Role.ADMIN
            user.is_staff = True
            if options["name"]:
                user.name = options["name"]
            user.save(update_fields=["role", "is_staff", "name", "updated_at"])
            _, raw_key = generate_api_key(user, name=options["key_name"])

        action = "Created" if created else "Promoted"
        self.stdout.write(self.style.SUCCESS(f"{action} admin {user.email}"))
        self.stdout.write(f"API key (shown once): {raw_key}")
