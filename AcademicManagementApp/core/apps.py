"""Core app configuration and startup checks (like submission resource domains)."""

from django.apps import AppConfig
from django.conf import settings
from django.core.checks import register, Warning

class CoreConfig(AppConfig):
    """AppConfig registering a system check for the submission URL allow-list."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "AcademicManagementApp.core"
    label = "core"

    def ready(self):
        """Register a Django system check warning about an open resource allow-list."""
        @register()
        def resource_domains_check(app_configs, **kwargs):
            domains = getattr(settings, "ALLOWED_RESOURCE_DOMAINS", None)
            if not domains:
                return [Warning(
                    "ALLOWED_RESOURCE_DOMAINS is empty; submission file URLs from any https host are accepted.",
                    id="core.W001",
                )]
            return []
