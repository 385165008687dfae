"""
storefront.documents

Flat-file JSON document store (the storefront's stand-in for a database).

Each document key maps to ``<data_dir>/<key>.json`` holding one JSON object:

    collections.json  {"items": [...]}        product catalog
    site.json         {...}                   editable site content
    orders.json       {"orders": [...]}       order ledger
    newsletter.json   {"subscribers": [...]}  newsletter sign-ups
    events.json       {"events": [...]}       tracked analytics events

Reads never fail: a missing, unreadable or corrupt file yields a copy of the
caller's fallback. Writes go through a temp file + ``os.replace`` so readers
never observe a half-written document.

Concurrency: ``update()`` serializes read-modify-write cycles per document key
with an in-process lock. Separate worker processes writing the same document
can still overwrite each other (last write wins).

========= CHANGE LOG =========
2026-02-11 • ADD: DocumentStore (read/write/update/bootstrap) + per-key locks.
2026-02-14 • FIX: Non-object JSON roots fall back like corrupt files.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from django.conf import settings

log = logging.getLogger("storefront")

COLLECTIONS = "collections"
SITE = "site"
ORDERS = "orders"
NEWSLETTER = "newsletter"
EVENTS = "events"

DOCUMENT_KEYS = (COLLECTIONS, SITE, ORDERS, NEWSLETTER, EVENTS)

# Empty envelopes written by bootstrap() when a document does not exist yet.
BOOTSTRAP_DEFAULTS: Dict[str, Dict[str, Any]] = {
    ORDERS: {"orders": []},
    NEWSLETTER: {"subscribers": []},
    EVENTS: {"events": []},
}

_locks_guard = threading.Lock()
_locks: Dict[str, threading.Lock] = {}


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _locks[key] = lock
        return lock


class DocumentStore:
    """Whole-document JSON persistence keyed by document name."""

    def __init__(self, data_dir: os.PathLike | str) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        if key not in DOCUMENT_KEYS:
            raise KeyError(f"Unknown document key: {key!r}")
        return self.data_dir / f"{key}.json"

    def read(self, key: str, fallback: Dict[str, Any]) -> Dict[str, Any]:
        path = self.path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
            data = json.loads(raw)
        except FileNotFoundError:
            return copy.deepcopy(fallback)
        except (OSError, ValueError) as e:
            log.warning("[store] unreadable document key=%s err=%s", key, type(e).__name__)
            return copy.deepcopy(fallback)
        if not isinstance(data, dict):
            log.warning("[store] document key=%s has non-object root; using fallback", key)
            return copy.deepcopy(fallback)
        return data

    def write(self, key: str, document: Dict[str, Any]) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(document, indent=2, ensure_ascii=False) + "\n"

        fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, path)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)

    def update(
        self,
        key: str,
        fallback: Dict[str, Any],
        fn: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]],
    ) -> Dict[str, Any]:
        """
        Read ``key``, let ``fn`` mutate (or replace) the document, write it back.

        The whole cycle holds the per-key lock, so concurrent updates from
        threads of this process are applied one after the other.
        """
        with _lock_for(self.path_for(key)):
            document = self.read(key, fallback)
            result = fn(document)
            if result is not None:
                document = result
            self.write(key, document)
            return document

    def bootstrap(self) -> list[str]:
        """Create the data dir and seed missing documents. Returns the keys created."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        created = []
        for key, default in BOOTSTRAP_DEFAULTS.items():
            if not self.path_for(key).exists():
                self.write(key, copy.deepcopy(default))
                created.append(key)
        return created


def get_store() -> DocumentStore:
    return DocumentStore(settings.STOREFRONT_DATA_DIR)
