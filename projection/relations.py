"""Relation cache and bulk relation loading.

Dynamic field computation never queries the database. Instead, batch hooks
load every relation a batch will need with one query per relation and store
the results in a RelationCache, a side table keyed by
``(model label, pk, relation name)``. Entity fields are never modified.

Relations are resolved through Django model introspection:

- a forward ``ForeignKey`` is a *single* relation (zero or one entity)
- a reverse foreign key (``related_name``) is a *collection* relation,
  hydrated as a dict keyed by a field of the related entity (pk by default)
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

from django.core.exceptions import FieldDoesNotExist
from django.db import models
from django.db.models import QuerySet

from .exceptions import RelationError

logger = logging.getLogger(__name__)


def entity_type(entity: models.Model) -> str:
    """Type tag of an entity: its model label, e.g. ``forum.ConversationMaster``."""
    return entity._meta.label


class RelationCache:
    """Per-call side table of hydrated relations.

    One cache belongs to exactly one outer transform call and is shared by
    every context derived from that call's root context.
    """

    def __init__(self):
        self._slots: dict[tuple[str, Any, str], Any] = {}

    @staticmethod
    def _slot(entity: models.Model, relation: str) -> tuple[str, Any, str]:
        if entity.pk is None:
            raise RelationError(
                f"Cannot cache relation '{relation}' on an unsaved {entity_type(entity)}"
            )
        return (entity_type(entity), entity.pk, relation)

    def hydrate(self, entity: models.Model, relation: str, value: Any) -> None:
        slot = self._slot(entity, relation)
        if slot in self._slots:
            logger.debug("Re-hydrating %s#%s.%s", slot[0], slot[1], relation)
        self._slots[slot] = value

    def is_hydrated(self, entity: models.Model, relation: str) -> bool:
        return self._slot(entity, relation) in self._slots

    def get(self, entity: models.Model, relation: str, default: Any = None) -> Any:
        return self._slots.get(self._slot(entity, relation), default)

    def hydrated_slots(self) -> list[tuple[str, Any, str]]:
        """All populated slots, in hydration order."""
        return list(self._slots)

    def __len__(self) -> int:
        return len(self._slots)


def get_relation_field(model: type[models.Model], relation: str):
    """Resolve a relation name to its Django field.

    Raises:
        RelationError: If the name is unknown or not a supported relation kind
    """
    try:
        field = model._meta.get_field(relation)
    except FieldDoesNotExist as e:
        raise RelationError(
            f"{model._meta.label} has no relation named '{relation}'"
        ) from e

    if not (field.many_to_one or field.one_to_many):
        raise RelationError(
            f"{model._meta.label}.{relation} is not a foreign key or reverse foreign key"
        )

    return field


def eager_load(finder: QuerySet, relation: str) -> QuerySet:
    """Attach an eager-load directive for `relation` to an unexecuted finder."""
    field = get_relation_field(finder.model, relation)
    if field.many_to_one:
        return finder.select_related(relation)
    return finder.prefetch_related(relation)


def load_relation(
    cache: RelationCache,
    entities: Mapping[Any, models.Model] | Iterable[models.Model],
    relation: str,
    key_field: str | None = None,
) -> list[models.Model]:
    """Hydrate `relation` on every entity with at most one query.

    Relations the finder already eager-loaded (``select_related`` /
    ``prefetch_related``) are reused without querying.

    Args:
        cache: The call's relation cache
        entities: Homogeneous entities, keyed by pk or as a plain iterable
        relation: Relation name (forward FK name or reverse related_name)
        key_field: Collection key field on the related entity (default: pk)

    Returns:
        The distinct related entities, in first-seen order

    Raises:
        RelationError: If the relation is unknown
    """
    if isinstance(entities, Mapping):
        entities = list(entities.values())
    else:
        entities = list(entities)
    if not entities:
        return []

    model = type(entities[0])
    field = get_relation_field(model, relation)

    if field.many_to_one:
        related = _load_single(cache, entities, relation, field)
    else:
        related = _load_collection(cache, entities, relation, field, key_field or "pk")

    logger.debug(
        "Hydrated %s.%s on %d entities (%d related)",
        model._meta.label,
        relation,
        len(entities),
        len(related),
    )
    return related


def _load_single(cache, entities, relation, field) -> list[models.Model]:
    pending_ids = {
        getattr(entity, field.attname)
        for entity in entities
        if not field.is_cached(entity)
    }
    pending_ids.discard(None)

    loaded = {}
    if pending_ids:
        loaded = field.related_model._default_manager.in_bulk(list(pending_ids))

    related: dict[Any, models.Model] = {}
    for entity in entities:
        if field.is_cached(entity):
            value = field.get_cached_value(entity)
        else:
            value = loaded.get(getattr(entity, field.attname))
        cache.hydrate(entity, relation, value)
        if value is not None:
            related.setdefault(value.pk, value)

    return list(related.values())


def _load_collection(cache, entities, relation, field, key_field) -> list[models.Model]:
    accessor = field.get_accessor_name()
    remote_fk = field.field

    prefetched = all(
        accessor in getattr(entity, "_prefetched_objects_cache", {})
        for entity in entities
    )

    grouped: dict[Any, list[models.Model]] = defaultdict(list)
    if prefetched:
        for entity in entities:
            grouped[entity.pk] = list(entity._prefetched_objects_cache[accessor])
    else:
        owner_ids = [entity.pk for entity in entities]
        queryset = field.related_model._default_manager.filter(
            **{f"{remote_fk.name}__in": owner_ids}
        )
        for member in queryset:
            grouped[getattr(member, remote_fk.attname)].append(member)

    related: list[models.Model] = []
    for entity in entities:
        members = grouped.get(entity.pk, [])
        cache.hydrate(
            entity,
            relation,
            {getattr(member, key_field): member for member in members},
        )
        related.extend(members)

    return related


__all__ = [
    "RelationCache",
    "entity_type",
    "get_relation_field",
    "eager_load",
    "load_relation",
]
