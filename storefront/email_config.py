"""
storefront.email_config

Centralized, env-driven email configuration for order notifications.

Provider choice is infra-only (env vars), not business logic. Anymail talks to
the transactional email API; SMTP stays available as a fallback.

SUPPORTED PROVIDERS (set STOREFRONT_EMAIL_PROVIDER)
- mailgun    (default)
- postmark
- sendgrid
- smtp

ENV VARS
- STOREFRONT_EMAIL_PROVIDER
- DEFAULT_FROM_EMAIL
- MAILGUN_API_KEY, MAILGUN_DOMAIN, ANYMAIL_MAILGUN_API_URL
- POSTMARK_SERVER_TOKEN
- SENDGRID_API_KEY
- EMAIL_HOST, EMAIL_PORT, EMAIL_HOST_USER, EMAIL_HOST_PASSWORD, EMAIL_USE_TLS/SSL

ORDER_EMAIL_ENABLED is True only when the chosen provider has credentials, so
an unconfigured deployment silently skips notifications instead of failing.

========= CHANGE LOG =========
2026-02-12 • ADD: provider → Django email settings mapping for order emails.
"""

from __future__ import annotations

import os
from typing import Dict


def _env(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _bool_env(name: str, default: str = "0") -> bool:
    v = _env(name, default).lower()
    return v in ("1", "true", "yes", "on")


def get_email_settings() -> Dict[str, object]:
    """
    Returns a dict of Django settings to merge into the settings module:

        from storefront.email_config import get_email_settings
        globals().update(get_email_settings())
    """
    provider = _env("STOREFRONT_EMAIL_PROVIDER", "mailgun").lower()

    base: Dict[str, object] = {
        "DEFAULT_FROM_EMAIL": _env("DEFAULT_FROM_EMAIL", "no-reply@localhost"),
    }

    if provider == "mailgun":
        api_key = _env("MAILGUN_API_KEY")
        domain = _env("MAILGUN_DOMAIN")
        base.update(
            {
                "EMAIL_BACKEND": "anymail.backends.mailgun.EmailBackend",
                "ANYMAIL": {
                    "MAILGUN_API_KEY": api_key,
                    "MAILGUN_SENDER_DOMAIN": domain,
                    # EU region: ANYMAIL_MAILGUN_API_URL=https://api.eu.mailgun.net/v3
                    "MAILGUN_API_URL": _env("ANYMAIL_MAILGUN_API_URL", "https://api.mailgun.net/v3"),
                },
                "ORDER_EMAIL_ENABLED": bool(api_key and domain),
            }
        )
        return base

    if provider == "postmark":
        token = _env("POSTMARK_SERVER_TOKEN")
        base.update(
            {
                "EMAIL_BACKEND": "anymail.backends.postmark.EmailBackend",
                "ANYMAIL": {"POSTMARK_SERVER_TOKEN": token},
                "ORDER_EMAIL_ENABLED": bool(token),
            }
        )
        return base

    if provider == "sendgrid":
        api_key = _env("SENDGRID_API_KEY")
        base.update(
            {
                "EMAIL_BACKEND": "anymail.backends.sendgrid.EmailBackend",
                "ANYMAIL": {"SENDGRID_API_KEY": api_key},
                "ORDER_EMAIL_ENABLED": bool(api_key),
            }
        )
        return base

    # SMTP fallback
    host = _env("EMAIL_HOST", "")
    base.update(
        {
            "EMAIL_BACKEND": "django.core.mail.backends.smtp.EmailBackend",
            "EMAIL_HOST": host or "localhost",
            "EMAIL_PORT": int(_env("EMAIL_PORT", "587") or "587"),
            "EMAIL_HOST_USER": _env("EMAIL_HOST_USER", ""),
            "EMAIL_HOST_PASSWORD": _env("EMAIL_HOST_PASSWORD", ""),
            "EMAIL_USE_TLS": _bool_env("EMAIL_USE_TLS", "1"),
            "EMAIL_USE_SSL": _bool_env("EMAIL_USE_SSL", "0"),
            "EMAIL_TIMEOUT": int(_env("EMAIL_TIMEOUT", "10") or "10"),
            "ORDER_EMAIL_ENABLED": bool(host),
        }
    )
    return base
