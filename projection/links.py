"""Link and permission builders.

Links are built from the route table in ``settings.PROJECTION_ROUTES``::

    PROJECTION_ROUTES = {
        "public": {"conversations": ["conversations", "conversation_id"]},
        "api": {"conversations": ["conversations", "conversation_id"]},
    }

Each route is a path prefix plus the field that fills the id segment. The id
comes from the entity, or from `extra` when no entity is given. Remaining
`extra` arguments become the query string.
"""

from collections.abc import Callable, Mapping
from typing import Any

from django.conf import settings
from django.utils.http import urlencode

from .exceptions import LinkError

LINK_TYPE_PUBLIC = "public"
LINK_TYPE_API = "api"

_BASE_URL_SETTINGS = {
    LINK_TYPE_PUBLIC: "PROJECTION_PUBLIC_BASE_URL",
    LINK_TYPE_API: "PROJECTION_API_BASE_URL",
}


def _get_route(link_type: str, route: str) -> tuple[str, str]:
    routes = getattr(settings, "PROJECTION_ROUTES", {}).get(link_type)
    if routes is None:
        raise LinkError(f"Unknown link type '{link_type}'")
    if route not in routes:
        available = ", ".join(sorted(routes)) or "none"
        raise LinkError(
            f"Unknown {link_type} route '{route}'. Available: {available}"
        )
    prefix, key_field = routes[route]
    return prefix.strip("/"), key_field


def build_link(
    link_type: str,
    route: str,
    entity: Any = None,
    extra: Mapping[str, Any] | None = None,
) -> str:
    """
    Build an absolute URL.

    Args:
        link_type: "public" or "api"
        route: Route name in the route table
        entity: Entity whose key fills the id segment, or None
        extra: Extra arguments; the route key is taken from here when no
            entity is given, everything else goes to the query string

    Returns:
        str: Absolute URL

    Raises:
        LinkError: If the link type or route is unknown
    """
    prefix, key_field = _get_route(link_type, route)
    params = dict(extra or {})

    if entity is not None:
        key_value = getattr(entity, key_field, None)
        if key_value is None:
            raise LinkError(
                f"{type(entity).__name__} has no value for '{key_field}' "
                f"required by {link_type} route '{route}'"
            )
    else:
        key_value = params.pop(key_field, None)

    base_url = getattr(settings, _BASE_URL_SETTINGS[link_type], "/")
    if not base_url.endswith("/"):
        base_url += "/"

    path = f"{prefix}/"
    if key_value is not None:
        path += f"{key_value}/"

    url = base_url + path
    if params:
        url += "?" + urlencode(params)
    return url


def build_public_link(route: str, entity: Any = None, extra: Mapping[str, Any] | None = None) -> str:
    return build_link(LINK_TYPE_PUBLIC, route, entity, extra)


def build_api_link(route: str, entity: Any = None, extra: Mapping[str, Any] | None = None) -> str:
    return build_link(LINK_TYPE_API, route, entity, extra)


def build_permissions(checks: Mapping[str, bool | Callable[[], bool]]) -> dict[str, bool]:
    """Evaluate a mapping of permission names to booleans or zero-arg predicates."""
    return {
        name: bool(check() if callable(check) else check)
        for name, check in checks.items()
    }


__all__ = [
    "LINK_TYPE_PUBLIC",
    "LINK_TYPE_API",
    "build_link",
    "build_public_link",
    "build_api_link",
    "build_permissions",
]
