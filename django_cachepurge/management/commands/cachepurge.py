"""Inspect and purge managed cache pools from the command line.

Usage::

    python manage.py cachepurge pools
    python manage.py cachepurge keys --pool default --query user
    python manage.py cachepurge delete app:1:user:42 app:1:user:43
    python manage.py cachepurge clear --pool orm
"""

from __future__ import annotations

from typing import Any

from django.core.management.base import BaseCommand, CommandParser

from django_cachepurge import get_purge_service


class Command(BaseCommand):
    help = "List, delete and clear keys in the cache pools managed by this application."

    def add_arguments(self, parser: CommandParser) -> None:
        subparsers = parser.add_subparsers(dest="action", required=True)

        subparsers.add_parser("pools", help="List managed pools.")

        keys = subparsers.add_parser("keys", help="List keys of one or all pools.")
        keys.add_argument("--pool", default=None, help="Pool name; all pools when omitted.")
        keys.add_argument("--query", default="", help="Case-insensitive search in display and raw keys.")

        delete = subparsers.add_parser("delete", help="Delete raw keys inside managed namespaces.")
        delete.add_argument("keys", nargs="+", metavar="KEY", help="Raw key as listed by 'keys'.")

        clear = subparsers.add_parser("clear", help="Clear one or all pools.")
        clear.add_argument("--pool", default=None, help="Pool name; all pools when omitted.")

    def handle(self, *args: Any, **options: Any) -> None:
        service = get_purge_service()
        action = options["action"]

        if action == "pools":
            for name, label in service.list_managed_pools().items():
                self.stdout.write(f"{name}\t{label}")

        elif action == "keys":
            listing = service.list_keys(options["pool"], options["query"])
            for row in listing:
                self.stdout.write(f"{row.pool}\t{row.ttl}\t{row.display_key}\t{row.raw_key}")
            for error in listing.errors:
                self.stderr.write(f"Store error: {error}")

        elif action == "delete":
            deleted = service.delete_keys(options["keys"])
            self.stdout.write(self.style.SUCCESS(f"{deleted} cache key(s) deleted."))

        elif action == "clear":
            cleared = service.clear_pools(options["pool"])
            self.stdout.write(self.style.SUCCESS(f"{cleared} cache pool(s) cleared."))
