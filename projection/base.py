"""Base class for per-entity-type handlers.

A handler describes how one entity type is projected into an output map:

- static mappings copy a source field under a public output key
- dynamic keys are computed by calculate_dynamic_value()
- collect_links() and collect_permissions() add the reserved ``links`` and
  ``permissions`` keys
- on_transform_entities() and on_transform_finder() are batch hooks that
  hydrate every relation the batch needs before per-entity work starts

Handlers are registered once per process and must not keep entity state
between calls; everything per-call lives in the TransformContext.
"""

from abc import ABC
from collections.abc import Mapping
from typing import Any, ClassVar, NamedTuple, Optional

from django.db.models import QuerySet

from .context import TransformContext
from .exceptions import MappingCollisionError
from .links import build_api_link, build_public_link
from .relations import eager_load, load_relation

KEY_LINKS = "links"
KEY_PERMISSIONS = "permissions"
RESERVED_KEYS = frozenset({KEY_LINKS, KEY_PERMISSIONS})


class FieldMapping(NamedTuple):
    """One output key of a handler.

    A mapping with a `source` copies that field verbatim. A mapping without
    one is a dynamic key. Opt-in dynamic keys are only computed when the
    selector explicitly includes them.
    """

    key: str
    source: Optional[str] = None
    opt_in: bool = False

    @property
    def is_dynamic(self) -> bool:
        return self.source is None


class AbstractHandler(ABC):
    """Contract every entity-type handler implements.

    Subclasses declare `mappings` and override whichever hooks they need;
    every hook has a neutral default.
    """

    LINK_PERMALINK = "permalink"
    LINK_DETAIL = "detail"

    PERM_DELETE = "delete"
    PERM_EDIT = "edit"
    PERM_VIEW = "view"

    # Set by the registry
    entity_type: ClassVar[str] = ""

    mappings: ClassVar[tuple[FieldMapping, ...]] = ()

    # Collection relation name -> key field of the related entity
    relation_keys: ClassVar[dict[str, str]] = {}

    def get_mappings(self, context: TransformContext) -> list[FieldMapping]:
        return list(self.mappings)

    def calculate_dynamic_value(self, context: TransformContext, key: str) -> Any:
        return None

    def collect_links(self, context: TransformContext) -> dict[str, str]:
        return {}

    def collect_permissions(self, context: TransformContext) -> dict[str, bool]:
        return {}

    def on_transform_entities(
        self, context: TransformContext, entities: Mapping[Any, Any]
    ) -> Mapping[Any, Any]:
        return entities

    def on_transform_finder(self, context: TransformContext, finder: QuerySet) -> QuerySet:
        return finder

    def validate_mappings(self) -> None:
        """Check the declared output keys once, at registration time.

        Raises:
            MappingCollisionError: On duplicate keys, a dynamic key shadowing
                a static one, or use of a reserved key
        """
        seen: dict[str, FieldMapping] = {}
        for mapping in self.mappings:
            if mapping.key in RESERVED_KEYS:
                raise MappingCollisionError(
                    f"{type(self).__name__} uses reserved output key '{mapping.key}'"
                )
            if mapping.key in seen:
                previous = seen[mapping.key]
                kinds = {m.is_dynamic for m in (previous, mapping)}
                detail = (
                    "dynamic key collides with static mapping"
                    if len(kinds) == 2
                    else "declared twice"
                )
                raise MappingCollisionError(
                    f"{type(self).__name__} output key '{mapping.key}': {detail}"
                )
            if mapping.opt_in and not mapping.is_dynamic:
                raise MappingCollisionError(
                    f"{type(self).__name__} output key '{mapping.key}': "
                    f"only dynamic keys can be opt-in"
                )
            seen[mapping.key] = mapping

    def build_public_link(self, route: str, entity: Any = None, extra=None) -> str:
        return build_public_link(route, entity, extra)

    def build_api_link(self, route: str, entity: Any = None, extra=None) -> str:
        return build_api_link(route, entity, extra)

    def call_on_transform_entities_for_relation(
        self,
        context: TransformContext,
        entities: Mapping[Any, Any],
        key: str,
        relation: str,
        cascade: bool = True,
    ) -> list[Any]:
        """Hydrate `relation` across the whole batch with one bulk query.

        When `cascade` is set, the related entities' own batch hook then runs
        once on the related set, with a sub-context for `key`.

        Returns:
            The distinct related entities
        """
        related = load_relation(
            context.relations, entities, relation, self.relation_keys.get(relation)
        )

        if cascade and related:
            transformer = context.transformer
            handler = transformer.get_handler(related[0])
            sub_context = context.get_sub_context(key)
            handler.on_transform_entities(
                sub_context, {entity.pk: entity for entity in related}
            )

        return related

    def call_on_transform_finder_for_relation(
        self,
        context: TransformContext,
        finder: QuerySet,
        key: str,
        relation: str,
    ) -> QuerySet:
        """Make `finder` eager-load `relation` so the batch hook needs no query for it."""
        return eager_load(finder, relation)


__all__ = [
    "AbstractHandler",
    "FieldMapping",
    "KEY_LINKS",
    "KEY_PERMISSIONS",
    "RESERVED_KEYS",
]
