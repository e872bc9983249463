"""Handler for conversation messages."""

from typing import Any

from django.utils.html import escape

from ..base import AbstractHandler, FieldMapping
from ..context import TransformContext
from ..registry import register_handler
from ..templater import ATTACH_TAG_PATTERN, ApiTemplater


@register_handler("forum.ConversationMessage")
class ConversationMessageHandler(AbstractHandler):
    """
    Projects a single conversation message.

    Messages embedded in a conversation (first_message, last_message) do not
    repeat the link back to their conversation.
    """

    KEY_ID = "message_id"
    KEY_CONVERSATION_ID = "conversation_id"
    KEY_CREATOR_USER_ID = "creator_user_id"
    KEY_CREATOR_USERNAME = "creator_username"
    KEY_CREATE_DATE = "message_create_date"
    KEY_BODY = "message_body"
    KEY_ATTACHMENT_COUNT = "message_attachment_count"

    DYNAMIC_KEY_BODY_HTML = "message_body_html"
    DYNAMIC_KEY_IS_IGNORED = "user_is_ignored"
    DYNAMIC_KEY_ATTACHMENTS = "attachments"

    LINK_CONVERSATION = "conversation"

    mappings = (
        FieldMapping(KEY_ID, "message_id"),
        FieldMapping(KEY_CONVERSATION_ID, "conversation_id"),
        FieldMapping(KEY_CREATOR_USER_ID, "user_id"),
        FieldMapping(KEY_CREATOR_USERNAME, "username"),
        FieldMapping(KEY_CREATE_DATE, "message_date"),
        FieldMapping(KEY_BODY, "message"),
        FieldMapping(KEY_ATTACHMENT_COUNT, "attach_count"),
        FieldMapping(DYNAMIC_KEY_BODY_HTML),
        FieldMapping(DYNAMIC_KEY_IS_IGNORED),
        FieldMapping(DYNAMIC_KEY_ATTACHMENTS),
    )

    templater = ApiTemplater()

    def calculate_dynamic_value(self, context: TransformContext, key: str) -> Any:
        message = context.get_source()

        if key == self.DYNAMIC_KEY_BODY_HTML:
            return self._render_body_html(context, message)

        if key == self.DYNAMIC_KEY_IS_IGNORED:
            return context.visitor.is_ignoring(message.user_id)

        if key == self.DYNAMIC_KEY_ATTACHMENTS:
            return context.transformer.transform_entity_relation(
                context, key, message, "attachments"
            )

        return None

    def _render_body_html(self, context: TransformContext, message) -> str:
        attachments = context.get_relation(message, "attachments") or {}

        def render_tag(match):
            attachment = attachments.get(int(match.group("attachment_id")))
            if attachment is None:
                return match.group(0)
            data = context.get_relation(attachment, "data")
            return self.templater.render_attachment(
                attachment, data, full=match.group("mode") is not None
            )

        html = escape(message.message).replace("\n", "<br />\n")
        return ATTACH_TAG_PATTERN.sub(render_tag, html)

    def collect_links(self, context: TransformContext) -> dict[str, str]:
        message = context.get_source()
        links = {
            self.LINK_PERMALINK: self.build_public_link("conversation-messages", message),
            self.LINK_DETAIL: self.build_api_link("conversation-messages", message),
        }
        if not context.has_parent_source_type("forum.ConversationMaster"):
            links[self.LINK_CONVERSATION] = self.build_api_link(
                "conversations", None, {"conversation_id": message.conversation_id}
            )
        return links

    def collect_permissions(self, context: TransformContext) -> dict[str, bool]:
        message = context.get_source()
        return {
            self.PERM_EDIT: message.can_edit(context.visitor),
            self.PERM_DELETE: False,
        }

    def on_transform_entities(self, context, entities):
        if not (
            context.selector_should_exclude_field(self.DYNAMIC_KEY_ATTACHMENTS)
            and context.selector_should_exclude_field(self.DYNAMIC_KEY_BODY_HTML)
        ):
            self.call_on_transform_entities_for_relation(
                context, entities, self.DYNAMIC_KEY_ATTACHMENTS, "attachments"
            )

        return super().on_transform_entities(context, entities)


__all__ = ["ConversationMessageHandler"]
