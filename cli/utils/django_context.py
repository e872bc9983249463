"""Django context management for CLI commands."""

import os
from functools import wraps

import django
from django.apps import apps


class DjangoContextManager:
    """Manages Django setup for CLI commands."""

    _initialized = False

    @staticmethod
    def setup():
        """Initialize Django environment."""
        if DjangoContextManager._initialized:
            return

        os.environ.setdefault("DJANGO_SETTINGS_MODULE", "forumapi.settings")

        # Only call setup if not already configured
        if not apps.ready:
            django.setup()

        DjangoContextManager._initialized = True

    @staticmethod
    def with_django(func):
        """Decorator to ensure Django is set up before running a command."""

        @wraps(func)
        def wrapper(*args, **kwargs):
            DjangoContextManager.setup()
            return func(*args, **kwargs)

        return wrapper


def with_django(func):
    """Convenience decorator for ensuring Django context."""
    return DjangoContextManager.with_django(func)
