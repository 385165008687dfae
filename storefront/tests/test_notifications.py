"""
CHANGE LOG
- 2026-02-12 — Order status emails: content, skip rules, failures never raise.
- 2026-02-15 — Item list capped at 6 lines with "+N more".
"""

from __future__ import annotations

import os
from unittest import mock

from django.core import mail
from django.test import SimpleTestCase, override_settings

from storefront.email_config import get_email_settings
from storefront.emailing import build_status_email, format_money, notify_order_status


def _order(**overrides):
    order = {
        "id": "order-7",
        "status": "paid",
        "currency": "EUR",
        "subtotal": 1234.5,
        "items": [{"id": f"p{i}", "title": f"Item {i}", "quantity": 1} for i in range(8)],
        "customerEmail": "client@example.com",
    }
    order.update(overrides)
    return order


@override_settings(
    ORDER_EMAIL_ENABLED=True,
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    DEFAULT_FROM_EMAIL="shop@example.com",
    SHOP_NAME="Boutique",
    ORDER_NOTIFY_BCC="",
)
class NotifyOrderStatusTests(SimpleTestCase):
    def test_money_format(self):
        self.assertEqual(format_money(1234.5), "1 234,50 €")
        self.assertEqual(format_money("9.999", "usd"), "10,00 $")
        self.assertEqual(format_money("n/a"), "0,00 €")

    def test_content(self):
        content = build_status_email(_order(), "shipped")
        self.assertEqual(content["subject"], "Boutique - Order order-7: Shipped")
        self.assertIn("Total: 1 234,50 €", content["text"])
        self.assertIn("+2 more", content["text"])
        self.assertIn("1 × Item 5", content["text"])
        self.assertNotIn("Item 6", content["text"])
        self.assertNotIn("\u2014", content["subject"] + content["text"])
        self.assertTrue(content["text"].endswith("\nBoutique"))

    def test_html_is_escaped(self):
        content = build_status_email(_order(items=[{"title": "<b>Bold</b>", "quantity": 1}]), "paid")
        self.assertIn("&lt;b&gt;Bold&lt;/b&gt;", content["html"])

    def test_sends_with_bcc(self):
        with override_settings(ORDER_NOTIFY_BCC="owner@example.com, ops@example.com"):
            self.assertTrue(notify_order_status(_order(), "paid"))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].bcc, ["owner@example.com", "ops@example.com"])

    def test_skipped_without_valid_email(self):
        self.assertFalse(notify_order_status(_order(customerEmail=None), "paid"))
        self.assertFalse(notify_order_status(_order(customerEmail="nope"), "paid"))
        self.assertEqual(len(mail.outbox), 0)

    @override_settings(ORDER_EMAIL_ENABLED=False)
    def test_skipped_when_disabled(self):
        self.assertFalse(notify_order_status(_order(), "paid"))
        self.assertEqual(len(mail.outbox), 0)

    def test_backend_failure_is_logged_not_raised(self):
        with mock.patch("storefront.emailing.EmailMultiAlternatives.send", side_effect=OSError("smtp down")):
            with self.assertLogs("storefront", level="ERROR"):
                self.assertFalse(notify_order_status(_order(), "paid"))


class EmailConfigTests(SimpleTestCase):
    def _settings_for(self, **env):
        with mock.patch.dict(os.environ, env, clear=True):
            return get_email_settings()

    def test_mailgun_default_needs_key_and_domain(self):
        conf = self._settings_for(MAILGUN_API_KEY="key-123")
        self.assertEqual(conf["EMAIL_BACKEND"], "anymail.backends.mailgun.EmailBackend")
        self.assertFalse(conf["ORDER_EMAIL_ENABLED"])

        conf = self._settings_for(MAILGUN_API_KEY="key-123", MAILGUN_DOMAIN="mg.example.com")
        self.assertTrue(conf["ORDER_EMAIL_ENABLED"])
        self.assertEqual(conf["ANYMAIL"]["MAILGUN_SENDER_DOMAIN"], "mg.example.com")

    def test_postmark_and_sendgrid(self):
        conf = self._settings_for(STOREFRONT_EMAIL_PROVIDER="postmark", POSTMARK_SERVER_TOKEN="pm")
        self.assertEqual(conf["EMAIL_BACKEND"], "anymail.backends.postmark.EmailBackend")
        self.assertTrue(conf["ORDER_EMAIL_ENABLED"])

        conf = self._settings_for(STOREFRONT_EMAIL_PROVIDER="SendGrid")
        self.assertEqual(conf["EMAIL_BACKEND"], "anymail.backends.sendgrid.EmailBackend")
        self.assertFalse(conf["ORDER_EMAIL_ENABLED"])

    def test_smtp_fallback(self):
        conf = self._settings_for(STOREFRONT_EMAIL_PROVIDER="smtp", EMAIL_HOST="smtp.example.com", EMAIL_PORT="2525")
        self.assertEqual(conf["EMAIL_BACKEND"], "django.core.mail.backends.smtp.EmailBackend")
        self.assertEqual(conf["EMAIL_PORT"], 2525)
        self.assertTrue(conf["EMAIL_USE_TLS"])
        self.assertTrue(conf["ORDER_EMAIL_ENABLED"])
