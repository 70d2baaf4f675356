"""
Management command: rebuild_reward_cache
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Recomputes every user's cached ``Reward.points`` from the transaction
log and reports the rows that had drifted.

The command is **idempotent** — safe to run multiple times.

Usage::

    python manage.py rebuild_reward_cache
    python manage.py rebuild_reward_cache --email alice@example.com
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from rewards.services import LedgerService

User = get_user_model()


class Command(BaseCommand):
    help = "Rebuild cached reward totals from the transaction log."

    def add_arguments(self, parser):
        parser.add_argument(
            "--email",
            help="Only rebuild the cache of the user with this email.",
        )

    def handle(self, *args, **options):
        users = User.objects.order_by("pk")
        if options.get("email"):
            users = users.filter(email__iexact=options["email"])
            if not users.exists():
                raise CommandError(f"No user with email {options['email']!r}.")

        checked = 0
        fixed = 0
        for user in users.iterator():
            before = LedgerService.get_or_create_reward(user).points
            after = LedgerService.rebuild_reward_cache(user).points
            checked += 1
            if before != after:
                fixed += 1
                self.stdout.write(self.style.WARNING(
                    f"  {user.email}: {before} → {after}"
                ))

        self.stdout.write(self.style.SUCCESS(
            f"Checked {checked} user(s); corrected {fixed} cached total(s)."
        ))
