"""Handler for conversation recipients."""

from typing import Any

from ..base import AbstractHandler, FieldMapping
from ..context import TransformContext
from ..registry import register_handler


@register_handler("forum.ConversationRecipient")
class ConversationRecipientHandler(AbstractHandler):
    KEY_USER_ID = "user_id"

    DYNAMIC_KEY_USERNAME = "username"

    mappings = (
        FieldMapping(KEY_USER_ID, "user_id"),
        FieldMapping(DYNAMIC_KEY_USERNAME),
    )

    def calculate_dynamic_value(self, context: TransformContext, key: str) -> Any:
        if key == self.DYNAMIC_KEY_USERNAME:
            user = context.get_relation(context.get_source(), "user")
            return user.username if user is not None else None

        return None

    def collect_links(self, context: TransformContext) -> dict[str, str]:
        recipient = context.get_source()
        return {
            self.LINK_PERMALINK: self.build_public_link("members", recipient),
            self.LINK_DETAIL: self.build_api_link("users", recipient),
        }

    def on_transform_entities(self, context, entities):
        if not context.selector_should_exclude_field(self.DYNAMIC_KEY_USERNAME):
            self.call_on_transform_entities_for_relation(
                context, entities, self.DYNAMIC_KEY_USERNAME, "user", cascade=False
            )

        return super().on_transform_entities(context, entities)


__all__ = ["ConversationRecipientHandler"]
