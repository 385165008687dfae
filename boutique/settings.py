"""
Boutique Django settings

CHANGE LOG
----------
2026-02-16 • Rate limits moved to STOREFRONT_RATE_LIMITS (per-scope max/window).
2026-02-12 • Email provider settings come from storefront.email_config.
- Anymail backend chosen by STOREFRONT_EMAIL_PROVIDER; SMTP kept as fallback.
- ORDER_EMAIL_ENABLED stays False until the provider has credentials.

2026-02-11 • Initial settings for the storefront backend.
- JSON documents live in STOREFRONT_DATA_DIR (no ORM models).
- Logging: RotatingFileHandler (UTF-8) + console for the "storefront" logger.
"""

from pathlib import Path
import os
from dotenv import load_dotenv

from storefront.email_config import get_email_settings

# ========= Base / Env =========
BASE_DIR = Path(__file__).resolve().parent.parent

ENV_CANDIDATES = [
    BASE_DIR / ".env",         # project root
    BASE_DIR.parent / ".env",  # repo root (if settings/ nested)
]
for _env in ENV_CANDIDATES:
    if _env.exists():
        load_dotenv(_env)
        print(f"[settings] Loaded env from: {_env}")
        break
else:
    load_dotenv()  # no-op if missing

# ========= Secret Key =========
DJANGO_SECRET_KEY = os.getenv("DJANGO_SECRET_KEY")
if not DJANGO_SECRET_KEY:
    print("[settings] DJANGO_SECRET_KEY not set; using an insecure development key.")
    DJANGO_SECRET_KEY = "insecure-dev-key-change-me"
SECRET_KEY = DJANGO_SECRET_KEY

DEBUG = os.getenv("DEBUG", "False") == "True"

# ========= Hosts / Security =========
ALLOWED_HOSTS = [
    "127.0.0.1",
    "localhost",
    "testserver",
] + (os.getenv("ADDITIONAL_HOSTS", "").split(",") if os.getenv("ADDITIONAL_HOSTS") else [])

# Behind a TLS-terminating proxy
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_SECURE = not DEBUG

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_SSL_REDIRECT = not DEBUG
if not DEBUG:
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True

# ========= Installed apps =========
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
    "rest_framework",
    "anymail",
    "storefront",
]

# ========= Middleware =========
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
]

APPEND_SLASH = False

# ========= URL / Templates / WSGI =========
ROOT_URLCONF = "boutique.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {"context_processors": ["django.template.context_processors.request"]},
    },
]

WSGI_APPLICATION = "boutique.wsgi.application"

# ========= Database =========
# Unused by the storefront (JSON documents), required by Django's test runner.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
        "OPTIONS": {"timeout": 30},
    }
}

# ========= Cache (rate limiting) =========
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "boutique-ratelimit",
    }
}

# ========= I18N =========
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ========= Static =========
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "UNAUTHENTICATED_USER": None,
}

# ========= Storefront =========
STOREFRONT_DATA_DIR = Path(os.getenv("STOREFRONT_DATA_DIR", str(BASE_DIR / "data")))
STOREFRONT_BASE_URL = os.getenv("STOREFRONT_BASE_URL", "").strip().rstrip("/")
SHOP_NAME = os.getenv("SHOP_NAME", "Boutique")

DEFAULT_ADMIN_API_TOKEN = "change-this-admin-token"
ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN", DEFAULT_ADMIN_API_TOKEN)
if ADMIN_API_TOKEN == DEFAULT_ADMIN_API_TOKEN:
    print("[settings] ADMIN_API_TOKEN is the default value; change it before deploying.")

# scope -> (max requests, window seconds)
STOREFRONT_RATE_LIMITS = {
    "api": (400, 15 * 60),
    "checkout": (25, 10 * 60),
    "newsletter": (30, 15 * 60),
    "track": (200, 15 * 60),
    "admin": (240, 10 * 60),
}

# ========= Stripe =========
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")

# ========= Email (Anymail provider via storefront.email_config) =========
globals().update(get_email_settings())
ORDER_NOTIFY_BCC = os.getenv("ORDER_NOTIFY_BCC", "").strip()

print(f"[settings] EMAIL_BACKEND = {EMAIL_BACKEND}")  # noqa: F821
print(f"[settings] ORDER_EMAIL_ENABLED = {ORDER_EMAIL_ENABLED}")  # noqa: F821

# ========= Logging =========
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "file": {
            "level": "INFO",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / "storefront.log",
            "maxBytes": 1024 * 1024 * 15,
            "backupCount": 10,
            "formatter": "verbose",
            "encoding": "utf-8",
        },
        "console": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "storefront": {
            "handlers": ["file", "console"],
            "level": "INFO",
            "propagate": False,
        },
        "django": {
            "handlers": ["file"],
            "level": "ERROR",
            "propagate": True,
        },
        "django.core.mail": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}
