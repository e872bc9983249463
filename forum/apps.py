"""
Django app configuration for the forum entity store.
"""

from django.apps import AppConfig


class ForumConfig(AppConfig):
    """Configuration for the forum app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'forum'
    verbose_name = 'Forum'
