"""Handler for forum conversations (ConversationMaster)."""

import logging
from collections import defaultdict
from typing import Any

from forum.models import ConversationRecipient, ConversationUser

from ..base import AbstractHandler, FieldMapping
from ..context import TransformContext
from ..links import build_permissions
from ..registry import register_handler

logger = logging.getLogger(__name__)


@register_handler("forum.ConversationMaster")
class ConversationMasterHandler(AbstractHandler):
    """
    Projects a conversation as seen by the visitor.

    Read state comes from the visitor's recipient record. A missing record
    reads as deleted (conversation_is_deleted is True) but not open
    (conversation_is_open is False).
    """

    KEY_CREATE_DATE = "conversation_create_date"
    KEY_ID = "conversation_id"
    KEY_MESSAGE_COUNT = "conversation_message_count"
    KEY_TITLE = "conversation_title"
    KEY_CREATOR_USER_ID = "creator_user_id"
    KEY_CREATOR_USERNAME = "creator_username"
    KEY_UPDATE_DATE = "conversation_update_date"

    DYNAMIC_KEY_IS_DELETED = "conversation_is_deleted"
    DYNAMIC_KEY_IS_IGNORED = "user_is_ignored"
    DYNAMIC_KEY_IS_OPEN = "conversation_is_open"
    DYNAMIC_KEY_FIRST_MESSAGE = "first_message"
    DYNAMIC_KEY_HAS_NEW_MESSAGE = "conversation_has_new_message"
    DYNAMIC_KEY_LAST_MESSAGE = "last_message"
    DYNAMIC_KEY_RECIPIENTS = "recipients"

    LINK_MESSAGES = "messages"

    PERM_REPLY = "reply"
    PERM_UPLOAD_ATTACHMENT = "upload_attachment"

    RECIPIENT_KEYS = (
        DYNAMIC_KEY_IS_DELETED,
        DYNAMIC_KEY_IS_OPEN,
        DYNAMIC_KEY_HAS_NEW_MESSAGE,
        DYNAMIC_KEY_RECIPIENTS,
    )

    mappings = (
        FieldMapping(KEY_CREATE_DATE, "start_date"),
        FieldMapping(KEY_ID, "conversation_id"),
        FieldMapping(KEY_MESSAGE_COUNT, "reply_count"),
        FieldMapping(KEY_TITLE, "title"),
        FieldMapping(KEY_CREATOR_USER_ID, "user_id"),
        FieldMapping(KEY_CREATOR_USERNAME, "username"),
        FieldMapping(KEY_UPDATE_DATE, "last_message_date"),
        FieldMapping(DYNAMIC_KEY_IS_DELETED),
        FieldMapping(DYNAMIC_KEY_IS_IGNORED),
        FieldMapping(DYNAMIC_KEY_IS_OPEN),
        FieldMapping(DYNAMIC_KEY_FIRST_MESSAGE),
        FieldMapping(DYNAMIC_KEY_HAS_NEW_MESSAGE),
        FieldMapping(DYNAMIC_KEY_LAST_MESSAGE, opt_in=True),
        FieldMapping(DYNAMIC_KEY_RECIPIENTS),
    )

    relation_keys = {"recipients": "user_id"}

    def _get_visitor_recipient(self, context: TransformContext):
        conversation = context.get_source()
        recipients = context.get_relation(conversation, "recipients") or {}
        return recipients.get(context.visitor.user_id)

    def calculate_dynamic_value(self, context: TransformContext, key: str) -> Any:
        conversation = context.get_source()

        if key == self.DYNAMIC_KEY_IS_DELETED:
            recipient = self._get_visitor_recipient(context)
            if recipient is None:
                return True
            return recipient.is_deleted

        if key == self.DYNAMIC_KEY_IS_IGNORED:
            return context.visitor.is_ignoring(conversation.user_id)

        if key == self.DYNAMIC_KEY_IS_OPEN:
            recipient = self._get_visitor_recipient(context)
            if recipient is None:
                return False
            return recipient.recipient_state == ConversationRecipient.STATE_ACTIVE

        if key == self.DYNAMIC_KEY_FIRST_MESSAGE:
            first_message = context.get_relation(conversation, "first_message")
            if first_message is None:
                return None
            return context.transformer.transform_entity(context, key, first_message)

        if key == self.DYNAMIC_KEY_HAS_NEW_MESSAGE:
            recipient = self._get_visitor_recipient(context)
            if recipient is None:
                return False
            return recipient.last_read_date < conversation.last_message_date

        if key == self.DYNAMIC_KEY_LAST_MESSAGE:
            if not context.selector_should_include_field(key):
                return None
            last_message = context.get_relation(conversation, "last_message")
            if last_message is None:
                return None
            return context.transformer.transform_entity(context, key, last_message)

        if key == self.DYNAMIC_KEY_RECIPIENTS:
            return context.transformer.transform_entity_relation(
                context, key, conversation, "recipients"
            )

        return None

    def collect_links(self, context: TransformContext) -> dict[str, str]:
        conversation = context.get_source()
        return {
            self.LINK_PERMALINK: self.build_public_link("conversations", conversation),
            self.LINK_DETAIL: self.build_api_link("conversations", conversation),
            self.LINK_MESSAGES: self.build_api_link(
                "conversation-messages",
                None,
                {"conversation_id": conversation.conversation_id},
            ),
        }

    def collect_permissions(self, context: TransformContext) -> dict[str, bool]:
        conversation = context.get_source()
        visitor = context.visitor
        users = context.get_relation(conversation, "users") or {}
        membership = users.get(visitor.user_id)

        return build_permissions({
            self.PERM_REPLY: lambda: conversation.can_reply(visitor, membership),
            self.PERM_DELETE: True,
            self.PERM_UPLOAD_ATTACHMENT: lambda: conversation.can_upload_and_manage_attachments(visitor),
        })

    def on_transform_entities(self, context, entities):
        if not context.selector_should_exclude_field(self.DYNAMIC_KEY_FIRST_MESSAGE):
            self.call_on_transform_entities_for_relation(
                context, entities, self.DYNAMIC_KEY_FIRST_MESSAGE, "first_message"
            )

        if context.selector_should_include_field(self.DYNAMIC_KEY_LAST_MESSAGE):
            self.call_on_transform_entities_for_relation(
                context, entities, self.DYNAMIC_KEY_LAST_MESSAGE, "last_message"
            )

        if not all(context.selector_should_exclude_field(k) for k in self.RECIPIENT_KEYS):
            self.call_on_transform_entities_for_relation(
                context,
                entities,
                self.DYNAMIC_KEY_RECIPIENTS,
                "recipients",
                cascade=not context.selector_should_exclude_field(self.DYNAMIC_KEY_RECIPIENTS),
            )

        conversation_ids = list(entities.keys())
        if conversation_ids:
            users_by_conversation = defaultdict(dict)
            for conversation_user in ConversationUser.objects.filter(
                conversation_id__in=conversation_ids
            ):
                users_by_conversation[conversation_user.conversation_id][
                    conversation_user.owner_user_id
                ] = conversation_user

            for conversation in entities.values():
                context.relations.hydrate(
                    conversation,
                    "users",
                    users_by_conversation.get(conversation.conversation_id, {}),
                )
            logger.debug(
                "Hydrated users on %d conversation(s)", len(conversation_ids)
            )

        return super().on_transform_entities(context, entities)

    def on_transform_finder(self, context, finder):
        if not context.selector_should_exclude_field(self.DYNAMIC_KEY_FIRST_MESSAGE):
            finder = self.call_on_transform_finder_for_relation(
                context, finder, self.DYNAMIC_KEY_FIRST_MESSAGE, "first_message"
            )

        if context.selector_should_include_field(self.DYNAMIC_KEY_LAST_MESSAGE):
            finder = self.call_on_transform_finder_for_relation(
                context, finder, self.DYNAMIC_KEY_LAST_MESSAGE, "last_message"
            )

        return super().on_transform_finder(context, finder)


__all__ = ["ConversationMasterHandler"]
