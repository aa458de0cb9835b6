from .base import *  # noqa: F403
from .base import env

# Production overrides
DEBUG = False

# SECURITY WARNING: the development fallback key must never reach production.
SECRET_KEY = env("SECRET_KEY")

# Security settings
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "strict-origin"
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

# Behind a TLS-terminating proxy, trust X-Forwarded-Proto for HTTPS detection
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

# Share computed integrity values between worker processes.
TAGHELPERS_INTEGRITY_CACHE = env("TAGHELPERS_INTEGRITY_CACHE", default="redis")
