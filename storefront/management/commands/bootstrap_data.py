"""
CHANGE LOG
- 2026-02-11: Initial creation of management command `bootstrap_data`.
  Creates STOREFRONT_DATA_DIR and seeds empty orders/newsletter/events
  documents. Existing documents are never overwritten.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandParser

from storefront.documents import DocumentStore, get_store


class Command(BaseCommand):
    help = "Creates the storefront data directory and seeds missing JSON documents."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--data-dir",
            default="",
            help="Override settings.STOREFRONT_DATA_DIR for this run.",
        )

    def handle(self, *args, **opts) -> None:
        data_dir = str(opts.get("data_dir") or "").strip()
        store = DocumentStore(data_dir) if data_dir else get_store()

        created = store.bootstrap()
        self.stdout.write(self.style.NOTICE(f"[bootstrap] data_dir={store.data_dir}"))
        if created:
            self.stdout.write(self.style.SUCCESS(f"[bootstrap] created: {', '.join(created)}"))
        else:
            self.stdout.write(self.style.SUCCESS("[bootstrap] nothing to do; all documents present"))
