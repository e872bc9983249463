"""Handler registry keyed by entity type.

Each entity type (a model label such as ``forum.ConversationMaster``) maps
to exactly one handler instance. The default registry is populated when the
handler modules are imported, validated against
``settings.PROJECTION_TRANSFORMABLE_MODELS`` and frozen in
``ProjectionConfig.ready()``; after that it is read-only and can be shared
freely.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any, Optional

from .base import AbstractHandler
from .exceptions import (
    ConfigurationError,
    DuplicateHandlerError,
    HandlerNotFoundError,
    RegistryFrozenError,
)
from .relations import entity_type as get_entity_type

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """
    Mapping from entity type to handler instance.

    Usage:
        registry = HandlerRegistry()
        registry.register('forum.ConversationMaster', ConversationMasterHandler())

        handler = registry.get('forum.ConversationMaster')
        handler = registry.get_for(conversation)
    """

    def __init__(self):
        self._handlers: dict[str, AbstractHandler] = {}
        self._frozen = False

    def register(self, entity_type: str, handler: AbstractHandler) -> None:
        """
        Register a handler instance.

        Args:
            entity_type: Model label the handler projects
            handler: AbstractHandler instance

        Raises:
            RegistryFrozenError: If the registry was frozen
            DuplicateHandlerError: If the type already has a handler
            MappingCollisionError: If the handler's output keys collide
        """
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register a handler for '{entity_type}': registry is frozen"
            )

        if not isinstance(handler, AbstractHandler):
            raise ConfigurationError(
                f"Handler must be an AbstractHandler instance, got {type(handler).__name__}"
            )

        if entity_type in self._handlers:
            raise DuplicateHandlerError(
                f"Handler already registered for '{entity_type}': "
                f"{type(self._handlers[entity_type]).__name__}"
            )

        handler.validate_mappings()
        handler.entity_type = entity_type
        self._handlers[entity_type] = handler
        logger.debug("Registered %s for %s", type(handler).__name__, entity_type)

    def get(self, entity_type: str) -> AbstractHandler:
        """
        Get the handler for an entity type.

        Raises:
            HandlerNotFoundError: If no handler is registered
        """
        try:
            return self._handlers[entity_type]
        except KeyError:
            raise HandlerNotFoundError(entity_type, list(self._handlers)) from None

    def get_for(self, entity: Any) -> AbstractHandler:
        return self.get(get_entity_type(entity))

    def has(self, entity_type: str) -> bool:
        return entity_type in self._handlers

    def entity_types(self) -> list[str]:
        return list(self._handlers)

    def validate(self, required: Iterable[str]) -> None:
        """
        Check that every required entity type has a handler.

        Raises:
            ConfigurationError: Listing every type without a handler
        """
        missing = [label for label in required if label not in self._handlers]
        if missing:
            raise ConfigurationError(
                "No handler registered for transformable model(s): "
                + ", ".join(missing)
            )

    def freeze(self) -> None:
        self._frozen = True
        logger.info("Handler registry frozen with %d handler(s)", len(self._handlers))

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def clear(self) -> None:
        """
        Remove all handlers and unfreeze.

        Primarily for testing purposes.
        """
        self._handlers.clear()
        self._frozen = False


# Process-wide default registry
default_registry = HandlerRegistry()


def register_handler(
    entity_type: str,
    *,
    registry: Optional[HandlerRegistry] = None,
) -> Callable:
    """Class decorator registering one instance of the handler for `entity_type`.

    Example:
        @register_handler("forum.ConversationMaster")
        class ConversationMasterHandler(AbstractHandler):
            mappings = (FieldMapping("conversation_id", "conversation_id"),)
    """
    target = registry if registry is not None else default_registry

    def decorator(cls: type[AbstractHandler]) -> type[AbstractHandler]:
        target.register(entity_type, cls())
        return cls

    return decorator


__all__ = [
    "HandlerRegistry",
    "default_registry",
    "register_handler",
]
