from django.core.management.base import BaseCommand

from core.services.demo import DEMO_USERS, seed_demo_users


class Command(BaseCommand):
    help = "Create the admin/warden/student demo accounts if missing (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--password', help='Password for newly created accounts (default: DEMO_PASSWORD)')

    def handle(self, *args, **opts):
        created = {u.email for u in seed_demo_users(opts.get('password'))}
        for _, email, role in DEMO_USERS:
            state = "created" if email in created else "exists"
            self.stdout.write(self.style.SUCCESS(f"{state}: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("Demo users ensured."))
