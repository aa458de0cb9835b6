import threading

from django.apps import AppConfig


def build_integrity_resolver():
    """Build an :class:`IntegrityResolver` from the ``TAGHELPERS_*`` settings."""

    from django.conf import settings

    from .cache import build_integrity_cache
    from .integrity import IntegrityResolver
    from .paths import WebRootLookup

    cache = build_integrity_cache(
        getattr(settings, "TAGHELPERS_INTEGRITY_CACHE", "memory"),
        url=getattr(settings, "REDIS_URL", None),
        prefix=getattr(settings, "TAGHELPERS_INTEGRITY_CACHE_PREFIX", "Integrity-"),
        alias=getattr(settings, "TAGHELPERS_INTEGRITY_CACHE_ALIAS", "default"),
    )
    return IntegrityResolver(
        cache,
        WebRootLookup(settings.TAGHELPERS_ASSET_ROOT),
        include_min_variants=getattr(
            settings, "TAGHELPERS_INTEGRITY_MIN_VARIANTS", False
        ),
    )


class TaghelpersConfig(AppConfig):
    """Owns the integrity resolver shared by every template render."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "taghelpers"
    verbose_name = "Tag helpers"

    def __init__(self, app_name, app_module):
        super().__init__(app_name, app_module)
        self._resolver = None
        self._resolver_lock = threading.Lock()

    def ready(self):
        from django.test.signals import setting_changed

        setting_changed.connect(
            self._on_setting_changed, dispatch_uid="taghelpers.reset_resolver"
        )

    def get_integrity_resolver(self):
        with self._resolver_lock:
            if self._resolver is None:
                self._resolver = build_integrity_resolver()
            return self._resolver

    def reset_integrity_resolver(self):
        """Drop the resolver (and its in-process cache) so settings are re-read."""
        with self._resolver_lock:
            self._resolver = None

    def _on_setting_changed(self, setting, **kwargs):
        if setting.startswith("TAGHELPERS_") or setting == "REDIS_URL":
            self.reset_integrity_resolver()
