"""Resolved field selection for a transform.

A Selector answers two independent questions about an output key:

- should_include: is this optional field explicitly wanted?
- should_exclude: is this normally-present field explicitly suppressed?

A key can be neither, in which case the handler's default policy applies.
Dotted keys address nested transforms: ``last_message.attachments`` both
opts in to ``last_message`` and, inside it, to ``attachments``.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field


def _split_fields(value: str | Iterable[str] | None) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = value.split(",")
    return frozenset(part.strip() for part in value if part and part.strip())


@dataclass(frozen=True)
class Selector:
    """Immutable include/exclude predicate over output keys.

    Attributes:
        includes: Keys (possibly dotted) the caller opted in to
        excludes: Keys (possibly dotted) the caller suppressed
    """

    includes: frozenset[str] = field(default_factory=frozenset)
    excludes: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_fields(
        cls,
        include: str | Iterable[str] | None = None,
        exclude: str | Iterable[str] | None = None,
    ) -> "Selector":
        """Build a selector from comma-separated strings or iterables of keys."""
        return cls(includes=_split_fields(include), excludes=_split_fields(exclude))

    def should_include(self, key: str) -> bool:
        if key in self.includes:
            return True
        prefix = f"{key}."
        return any(include.startswith(prefix) for include in self.includes)

    def should_exclude(self, key: str) -> bool:
        return key in self.excludes

    def for_key(self, key: str) -> "Selector":
        """Narrow the selector to the fields nested under `key`."""
        prefix = f"{key}."
        return Selector(
            includes=frozenset(
                include[len(prefix):] for include in self.includes if include.startswith(prefix)
            ),
            excludes=frozenset(
                exclude[len(prefix):] for exclude in self.excludes if exclude.startswith(prefix)
            ),
        )


__all__ = ["Selector"]
