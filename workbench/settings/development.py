from .base import *  # noqa: F403

# Development overrides
DEBUG = True
ALLOWED_HOSTS = ["*"]

# Pick up edited assets without a restart of the static file handler.
WHITENOISE_AUTOREFRESH = True
