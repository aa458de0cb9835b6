"""Base settings for the workbench project."""

import logging
from pathlib import Path

import environ

from common.logging import configure_logging


logger = logging.getLogger(__name__)

# Build paths inside the project like this: BASE_DIR / 'subdir'.
# This file is at workbench/settings/base.py, so project root is three parents up
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# django-environ setup
env = environ.Env()
environ.Env.read_env(BASE_DIR / ".env")

configure_logging()


# Quick-start development settings - unsuitable for production
# See https://docs.djangoproject.com/en/5.2/howto/deployment/checklist/

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = env("SECRET_KEY", default="django-insecure-workbench-dev-key")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = False

ALLOWED_HOSTS = env.list(
    "ALLOWED_HOSTS",
    default=["localhost", ".localhost", "127.0.0.1", "testserver"],
)


# Application definition
# Order matters for template overrides: keep `theme` first.
INSTALLED_APPS = [
    "theme.apps.ThemeConfig",
    "taghelpers.apps.TaghelpersConfig",
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.staticfiles",
    "common",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "common.middleware.RequestLogContextMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "workbench.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
            ],
        },
    },
]

WSGI_APPLICATION = "workbench.wsgi.application"
ASGI_APPLICATION = "workbench.asgi.application"


# Database
# The helpers are stateless; sqlite only satisfies contrib apps.
DATABASES = {
    "default": env.db("DATABASE_URL", default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}")
}


# Internationalization
# https://docs.djangoproject.com/en/5.2/topics/i18n/

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True


# Tag helpers
# Site-relative asset paths (``/css/site.css``, ``~/js/site.js``) resolve
# against this directory, the equivalent of a web root.
TAGHELPERS_ASSET_ROOT = Path(
    env("TAGHELPERS_ASSET_ROOT", default=str(BASE_DIR / "theme" / "wwwroot"))
)
# One of ``memory``, ``redis`` or ``django``.
TAGHELPERS_INTEGRITY_CACHE = env("TAGHELPERS_INTEGRITY_CACHE", default="memory")
TAGHELPERS_INTEGRITY_CACHE_PREFIX = env(
    "TAGHELPERS_INTEGRITY_CACHE_PREFIX", default="Integrity-"
)
TAGHELPERS_INTEGRITY_CACHE_ALIAS = env(
    "TAGHELPERS_INTEGRITY_CACHE_ALIAS", default="default"
)
# Also hash the minified / unminified sibling of every referenced asset.
TAGHELPERS_INTEGRITY_MIN_VARIANTS = env.bool(
    "TAGHELPERS_INTEGRITY_MIN_VARIANTS", default=False
)

REDIS_URL = env.str("REDIS_URL", default="redis://localhost:6379/0")

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}


# Static files (CSS, JavaScript, Images)
# https://docs.djangoproject.com/en/5.2/howto/static-files/

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedStaticFilesStorage",
    },
}
# Serve the asset root at ``/`` so ``<script src="/js/site.js">`` is the
# same file the integrity helper hashes.
WHITENOISE_ROOT = TAGHELPERS_ASSET_ROOT

# Default primary key field type
# https://docs.djangoproject.com/en/5.2/ref/settings/#default-auto-field

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Logging / observability
LOGGING_CONFIG = "common.logging.configure_django_logging"

# Only per-logger levels are honoured; handlers and formatting belong to
# structlog (see common.logging).
LOGGING = {
    "loggers": {
        "django": {"level": env("DJANGO_LOG_LEVEL", default="INFO")},
        "taghelpers": {"level": env("TAGHELPERS_LOG_LEVEL", default="INFO")},
    },
}
