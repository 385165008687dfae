"""
CHANGE LOG
- 2026-02-11 — DocumentStore read fallbacks, atomic writes, locked updates, bootstrap.
- 2026-02-14 — Order ledger: insert order, patch semantics, summary shape.
- 2026-02-18 — Event log is capped at the newest MAX_EVENTS entries.
"""

from __future__ import annotations

import json
import os
import shutil
import tempfile
import threading
from io import StringIO

from django.core.management import call_command
from django.test import SimpleTestCase

from storefront import orders as ledger
from storefront.documents import EVENTS, NEWSLETTER, ORDERS, SITE, DocumentStore
from storefront.errors import OrderNotFound
from storefront.tracking import MAX_EVENTS, append_event


class DocumentStoreTests(SimpleTestCase):
    def setUp(self):
        self.data_dir = tempfile.mkdtemp(prefix="storefront-docs-")
        self.addCleanup(shutil.rmtree, self.data_dir, True)
        self.store = DocumentStore(self.data_dir)

    def test_missing_document_returns_copy_of_fallback(self):
        fallback = {"orders": []}
        doc = self.store.read(ORDERS, fallback)
        self.assertEqual(doc, {"orders": []})
        doc["orders"].append({"id": "x"})
        self.assertEqual(fallback, {"orders": []})

    def test_corrupt_and_non_object_documents_fall_back(self):
        with open(os.path.join(self.data_dir, "site.json"), "w", encoding="utf-8") as f:
            f.write("{not json")
        self.assertEqual(self.store.read(SITE, {"hero_title": "x"}), {"hero_title": "x"})

        with open(os.path.join(self.data_dir, "site.json"), "w", encoding="utf-8") as f:
            f.write("[1, 2, 3]")
        self.assertEqual(self.store.read(SITE, {}), {})

    def test_write_is_pretty_utf8_with_trailing_newline(self):
        self.store.write(SITE, {"hero_title": "Été"})
        with open(os.path.join(self.data_dir, "site.json"), encoding="utf-8") as f:
            raw = f.read()
        self.assertTrue(raw.endswith("\n"))
        self.assertIn("Été", raw)
        self.assertEqual(json.loads(raw), {"hero_title": "Été"})
        leftovers = [n for n in os.listdir(self.data_dir) if n.endswith(".tmp")]
        self.assertEqual(leftovers, [])

    def test_unknown_key_rejected(self):
        with self.assertRaises(KeyError):
            self.store.read("secrets", {})

    def test_bootstrap_only_creates_missing_documents(self):
        self.store.write(ORDERS, {"orders": [{"id": "keep"}]})
        created = self.store.bootstrap()
        self.assertEqual(sorted(created), sorted([NEWSLETTER, EVENTS]))
        self.assertEqual(self.store.read(ORDERS, {})["orders"], [{"id": "keep"}])
        self.assertEqual(self.store.bootstrap(), [])

    def test_concurrent_updates_are_not_lost(self):
        self.store.write(EVENTS, {"events": []})

        def _append(n):
            self.store.update(EVENTS, {"events": []}, lambda doc: doc["events"].append(n))

        threads = [threading.Thread(target=_append, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sorted(self.store.read(EVENTS, {})["events"]), list(range(20)))


class OrderLedgerTests(SimpleTestCase):
    def setUp(self):
        self.data_dir = tempfile.mkdtemp(prefix="storefront-orders-")
        self.addCleanup(shutil.rmtree, self.data_dir, True)
        self.store = DocumentStore(self.data_dir)

    def _order(self, order_id, status=ledger.CHECKOUT_PENDING):
        return {
            "id": order_id,
            "status": status,
            "subtotal": 20.0,
            "items": [{"id": "a", "title": "A", "quantity": 2, "unitPrice": 10.0, "image": ""}],
            "customerEmail": "client@example.com",
            "createdAt": "2026-02-11T10:00:00.000Z",
            "updatedAt": "2026-02-11T10:00:00.000Z",
        }

    def test_insert_prepends(self):
        ledger.insert_order(self.store, self._order("first"))
        ledger.insert_order(self.store, self._order("second"))
        self.assertEqual([o["id"] for o in ledger.list_orders(self.store)], ["second", "first"])

    def test_patch_merges_and_bumps_updated_at(self):
        ledger.insert_order(self.store, self._order("o1"))
        outcome = ledger.patch_order(self.store, "o1", {"status": ledger.SHIPPED})
        self.assertEqual(outcome["previous"]["status"], ledger.CHECKOUT_PENDING)
        self.assertEqual(outcome["order"]["status"], ledger.SHIPPED)
        self.assertNotEqual(outcome["order"]["updatedAt"], "2026-02-11T10:00:00.000Z")
        self.assertEqual(outcome["order"]["subtotal"], 20.0)

    def test_patch_unknown_order_raises_and_writes_nothing(self):
        ledger.insert_order(self.store, self._order("o1"))
        before = self.store.read(ORDERS, {})
        with self.assertRaises(OrderNotFound):
            ledger.patch_order(self.store, "missing", {"status": ledger.PAID})
        self.assertEqual(self.store.read(ORDERS, {}), before)

    def test_callable_returning_empty_delta_keeps_order(self):
        ledger.insert_order(self.store, self._order("o1", status=ledger.PAID))
        outcome = ledger.patch_order(self.store, "o1", lambda previous: {})
        self.assertEqual(outcome["order"]["updatedAt"], "2026-02-11T10:00:00.000Z")

    def test_sanitize_text_strips_control_chars_and_truncates(self):
        self.assertEqual(ledger.sanitize_text("  a\x00b\x1fc  ", 2), "ab")
        self.assertEqual(ledger.sanitize_text(None), "")

    def test_summary_counts_quantities(self):
        summary = ledger.order_summary(ledger.normalize_order(self._order("o1")))
        self.assertEqual(summary["itemCount"], 2)
        self.assertEqual(summary["currency"], "EUR")
        self.assertNotIn("customerEmail", summary)


class BootstrapCommandTests(SimpleTestCase):
    def test_seeds_missing_documents(self):
        data_dir = tempfile.mkdtemp(prefix="storefront-bootstrap-")
        self.addCleanup(shutil.rmtree, data_dir, True)
        target = os.path.join(data_dir, "nested")

        out = StringIO()
        call_command("bootstrap_data", "--data-dir", target, stdout=out)

        self.assertIn("created", out.getvalue())
        self.assertEqual(sorted(os.listdir(target)), ["events.json", "newsletter.json", "orders.json"])


class EventLogTests(SimpleTestCase):
    def setUp(self):
        self.data_dir = tempfile.mkdtemp(prefix="storefront-events-")
        self.addCleanup(shutil.rmtree, self.data_dir, True)
        self.store = DocumentStore(self.data_dir)

    def test_log_keeps_newest_entries_only(self):
        seeded = [{"id": f"old-{i}", "eventName": "page_view"} for i in range(MAX_EVENTS)]
        self.store.write(EVENTS, {"events": seeded})

        event = append_event(self.store, "purchase", {"orderId": "o1"})

        events = self.store.read(EVENTS, {})["events"]
        self.assertEqual(len(events), MAX_EVENTS)
        self.assertEqual(events[0]["id"], event["id"])
        self.assertEqual(events[0]["userAgentHash"], "system")
        self.assertEqual(events[1]["id"], "old-0")
        self.assertNotIn(f"old-{MAX_EVENTS - 1}", {e["id"] for e in events})
