"""Per-call transform state.

A TransformContext binds one source entity to the active selector, the
acting visitor and the relation cache of the outer call. Contexts are
immutable: nested transforms derive a child context that points back at
its parent, so handlers can inspect what they are embedded in at any depth.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Optional

from .relations import RelationCache, entity_type
from .selector import Selector

if TYPE_CHECKING:
    from forum.visitor import Visitor

    from .transformer import Transformer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformContext:
    """Immutable state for transforming one entity (or one batch).

    Attributes:
        transformer: Orchestrator used for nested transforms
        visitor: Caller identity
        selector: Field selection for this nesting level
        source: Entity bound to this context (None for batch-level contexts)
        key: Output key this context was created for (None at the root)
        parent: Enclosing context, if nested
        relations: Relation cache shared by the whole outer call
    """

    transformer: "Transformer"
    visitor: "Visitor"
    selector: Selector = field(default_factory=Selector)
    source: Any = None
    key: Optional[str] = None
    parent: Optional["TransformContext"] = None
    relations: RelationCache = field(default_factory=RelationCache)

    def get_source(self) -> Any:
        return self.source

    def selector_should_include_field(self, key: str) -> bool:
        return self.selector.should_include(key)

    def selector_should_exclude_field(self, key: str) -> bool:
        return self.selector.should_exclude(key)

    def with_source(self, source: Any) -> "TransformContext":
        """Child context for `source` with the same selector."""
        return replace(self, source=source, parent=self)

    def get_sub_context(self, key: str, source: Any = None) -> "TransformContext":
        """Child context for the nested output key `key`.

        The selector is narrowed to the dotted fields under `key`.
        """
        return replace(
            self,
            source=source,
            key=key,
            selector=self.selector.for_key(key),
            parent=self,
        )

    def get_relation(self, entity: Any, relation: str) -> Any:
        """Read a hydrated relation; an unhydrated relation reads as absent."""
        if not self.relations.is_hydrated(entity, relation):
            logger.debug(
                "Relation %s.%s not hydrated for pk=%s, treating as absent",
                entity_type(entity),
                relation,
                entity.pk,
            )
            return None
        return self.relations.get(entity, relation)

    def iter_parents(self) -> Iterator["TransformContext"]:
        parent = self.parent
        while parent is not None:
            yield parent
            parent = parent.parent

    def has_parent_source_type(self, label: str) -> bool:
        """Check whether any enclosing context is bound to an entity of `label`."""
        for parent in self.iter_parents():
            if parent.source is not None and entity_type(parent.source) == label:
                return True
        return False


__all__ = ["TransformContext"]
