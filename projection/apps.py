"""
Django app configuration for the projection engine.
"""

from django.apps import AppConfig
from django.conf import settings


class ProjectionConfig(AppConfig):
    """Configuration for the projection app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'projection'
    verbose_name = 'API Projection'

    def ready(self):
        """
        Register, validate and freeze the handler registry.

        Every model listed in PROJECTION_TRANSFORMABLE_MODELS must have
        exactly one handler; a missing one fails startup.
        """
        # Import handler implementations to register them
        from . import handlers  # noqa: F401
        from .registry import default_registry

        default_registry.validate(getattr(settings, "PROJECTION_TRANSFORMABLE_MODELS", []))
        default_registry.freeze()
