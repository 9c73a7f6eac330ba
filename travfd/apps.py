from django.apps import AppConfig
from django.core.signals import setting_changed


def _reset_cached_state(sender, setting, **kwargs) -> None:
    """Drop cached settings and service when TRAVFD changes (override_settings)."""
    if setting != "TRAVFD":
        return

    from .conf import refresh_settings
    from .service import reset_service

    refresh_settings()
    reset_service()


class TraVfdConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'travfd'
    verbose_name = 'TRA Virtual Fiscal Device'

    def ready(self):
        setting_changed.connect(_reset_cached_state)
