from django.apps import AppConfig


class MarketplaceConfig(AppConfig):
    """Unmanaged models over the marketplace tables; no migrations."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "marketplace"
    verbose_name = "Marketplace"
