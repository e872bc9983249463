"""Entity-to-API projection engine.

This package turns related forum entities into flat, client-facing output
maps under caller-controlled field selection, without N+1 queries:

- Per-entity-type handlers declare static mappings, dynamic keys, links and
  permissions
- Batch hooks hydrate relations for a whole batch with one query per relation
- A Selector decides which optional fields are computed and which are
  suppressed

Public API
----------
The main entry point is:

    from projection import Selector, transform

    data = transform(
        ConversationMaster.objects.filter(pk__in=ids),
        visitor,
        Selector.from_fields(include="last_message", exclude="recipients"),
    )

Adding New Handlers
-------------------
To project a new entity type:

    from projection import AbstractHandler, FieldMapping, register_handler

    @register_handler("forum.MyModel")
    class MyModelHandler(AbstractHandler):
        mappings = (
            FieldMapping("my_model_id", "id"),
            FieldMapping("my_dynamic_key"),
        )

        def calculate_dynamic_value(self, context, key):
            return context.get_source().compute_something()

Concrete handlers live in ``projection.handlers`` and are registered by
``ProjectionConfig.ready()``.
"""

from .base import AbstractHandler, FieldMapping
from .context import TransformContext
from .exceptions import (
    ConfigurationError,
    EntityTypeMismatchError,
    HandlerNotFoundError,
    MappingCollisionError,
    ProjectionError,
    RelationError,
)
from .registry import HandlerRegistry, default_registry, register_handler
from .selector import Selector
from .transformer import Transformer, get_transformer, transform

__all__ = [
    # Main API
    "transform",
    "Selector",
    "Transformer",
    "get_transformer",
    "TransformContext",
    # Handlers
    "AbstractHandler",
    "FieldMapping",
    "HandlerRegistry",
    "default_registry",
    "register_handler",
    # Errors
    "ProjectionError",
    "ConfigurationError",
    "HandlerNotFoundError",
    "MappingCollisionError",
    "RelationError",
    "EntityTypeMismatchError",
]
