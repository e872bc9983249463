"""Transformer: drives handlers over entities, batches and finders.

The batch entry points (transform_entities, transform_finder) are the only
ones that run a handler's batch hook before any per-entity computation.
Calling transform_entity directly on a batch skips hydration, and every
relation then reads as absent.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from django.db import models
from django.db.models import QuerySet

from .base import KEY_LINKS, KEY_PERMISSIONS, AbstractHandler
from .context import TransformContext
from .exceptions import EntityTypeMismatchError
from .registry import HandlerRegistry, default_registry
from .relations import RelationCache, entity_type
from .selector import Selector

logger = logging.getLogger(__name__)


class Transformer:
    """Orchestrates handlers from a registry."""

    def __init__(self, registry: Optional[HandlerRegistry] = None):
        self.registry = registry if registry is not None else default_registry

    def create_context(self, visitor, selector: Optional[Selector] = None) -> TransformContext:
        """Root context for one outer call, with a fresh relation cache."""
        return TransformContext(
            transformer=self,
            visitor=visitor,
            selector=selector if selector is not None else Selector(),
            relations=RelationCache(),
        )

    def get_handler(self, entity: Any) -> AbstractHandler:
        return self.registry.get_for(entity)

    def transform_entity(
        self, context: TransformContext, key: Optional[str], entity: Any
    ) -> dict[str, Any]:
        """
        Project one entity into an output map.

        Args:
            context: The calling context (the parent when nesting)
            key: Output key the entity is embedded under, or None at top level
            entity: The entity to project

        Returns:
            dict ordered as static mappings, dynamic keys, links, permissions

        Raises:
            HandlerNotFoundError: If the entity type has no handler
        """
        handler = self.get_handler(entity)
        if key is None:
            entity_context = context.with_source(entity)
        else:
            entity_context = context.get_sub_context(key, entity)

        return self._build(handler, entity_context)

    def _build(self, handler: AbstractHandler, context: TransformContext) -> dict[str, Any]:
        source = context.get_source()
        mappings = handler.get_mappings(context)
        data: dict[str, Any] = {}

        for mapping in mappings:
            if mapping.is_dynamic or context.selector_should_exclude_field(mapping.key):
                continue
            data[mapping.key] = getattr(source, mapping.source)

        for mapping in mappings:
            if not mapping.is_dynamic or context.selector_should_exclude_field(mapping.key):
                continue
            if mapping.opt_in and not context.selector_should_include_field(mapping.key):
                continue
            data[mapping.key] = handler.calculate_dynamic_value(context, mapping.key)

        if not context.selector_should_exclude_field(KEY_LINKS):
            links = handler.collect_links(context)
            if links:
                data[KEY_LINKS] = links

        if not context.selector_should_exclude_field(KEY_PERMISSIONS):
            permissions = handler.collect_permissions(context)
            if permissions:
                data[KEY_PERMISSIONS] = permissions

        return data

    def transform_entity_relation(
        self, context: TransformContext, key: str, owner: Any, relation: str
    ) -> list[dict[str, Any]]:
        """Project every member of a hydrated collection relation, in relation order."""
        members = context.get_relation(owner, relation)
        if not members:
            return []

        return [self.transform_entity(context, key, member) for member in members.values()]

    def transform_entities(
        self,
        context: TransformContext,
        handler: Optional[AbstractHandler],
        entities: Mapping[Any, Any] | Iterable[Any],
    ) -> list[dict[str, Any]]:
        """
        Run the batch hook once, then project each entity.

        Args:
            context: Batch-level context (usually the root context)
            handler: Handler for the entity type, or None to resolve it
            entities: Homogeneous entities, keyed by pk or as an iterable

        Returns:
            One output map per entity, in input order

        Raises:
            EntityTypeMismatchError: If the batch mixes entity types
        """
        if isinstance(entities, Mapping):
            keyed = dict(entities)
            batch = list(keyed.values())
        else:
            batch = list(entities)
            keyed = None
        if not batch:
            return []

        if handler is None:
            handler = self.get_handler(batch[0])

        # pks are only unique per type, so check before keying
        for entity in batch:
            if entity_type(entity) != handler.entity_type:
                raise EntityTypeMismatchError(
                    f"Cannot transform {entity_type(entity)} with the handler "
                    f"for {handler.entity_type}"
                )

        if keyed is None:
            keyed = {entity.pk: entity for entity in batch}

        logger.debug(
            "Transforming %d %s entities", len(keyed), handler.entity_type
        )
        keyed = handler.on_transform_entities(context, keyed)

        return [self.transform_entity(context, None, entity) for entity in keyed.values()]

    def transform_finder(
        self,
        context: TransformContext,
        handler: Optional[AbstractHandler],
        finder: QuerySet,
    ) -> list[dict[str, Any]]:
        """Let the handler prepare the finder, execute it, then transform the batch."""
        if handler is None:
            handler = self.registry.get(finder.model._meta.label)

        finder = handler.on_transform_finder(context, finder)
        return self.transform_entities(context, handler, list(finder))


_default_transformer: Optional[Transformer] = None


def get_transformer() -> Transformer:
    """Transformer bound to the default registry."""
    global _default_transformer
    if _default_transformer is None:
        _default_transformer = Transformer()
    return _default_transformer


def transform(source: Any, visitor, selector: Optional[Selector] = None) -> Any:
    """
    Project a finder, a collection or a single entity.

    This is the main public API. Each call gets its own root context and
    relation cache.

    Args:
        source: A QuerySet, a model instance, or an iterable of model instances
        visitor: The acting Visitor
        selector: Field selection (default: nothing included or excluded)

    Returns:
        One output map for a model instance, otherwise a list of output maps

    Examples:
        from projection import transform, Selector

        data = transform(
            ConversationMaster.objects.filter(pk__in=ids),
            Visitor.for_user(user),
            Selector.from_fields(include="last_message"),
        )
    """
    transformer = get_transformer()
    context = transformer.create_context(visitor, selector)

    if isinstance(source, QuerySet):
        return transformer.transform_finder(context, None, source)

    if isinstance(source, models.Model):
        return transformer.transform_entities(context, None, [source])[0]

    return transformer.transform_entities(context, None, source)


__all__ = [
    "Transformer",
    "get_transformer",
    "transform",
]
