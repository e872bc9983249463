"""Concrete handlers for the forum entity types.

Each module registers its handler with the default registry through the
@register_handler decorator when imported. ProjectionConfig.ready() imports
this package, so all handlers are available once Django is set up.
"""

# Import all handler modules to trigger registration
from . import attachment, conversation, message, recipient  # noqa: F401

__all__ = ["attachment", "conversation", "message", "recipient"]
