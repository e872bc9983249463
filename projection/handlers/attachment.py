"""Handler for message attachments."""

from typing import Any

from ..base import AbstractHandler, FieldMapping
from ..context import TransformContext
from ..registry import register_handler


@register_handler("forum.Attachment")
class AttachmentHandler(AbstractHandler):
    KEY_ID = "attachment_id"
    KEY_CREATE_DATE = "attachment_create_date"
    KEY_DOWNLOAD_COUNT = "attachment_download_count"

    DYNAMIC_KEY_FILENAME = "filename"
    DYNAMIC_KEY_WIDTH = "attachment_width"
    DYNAMIC_KEY_HEIGHT = "attachment_height"

    LINK_THUMBNAIL = "thumbnail"

    mappings = (
        FieldMapping(KEY_ID, "attachment_id"),
        FieldMapping(KEY_CREATE_DATE, "attach_date"),
        FieldMapping(KEY_DOWNLOAD_COUNT, "view_count"),
        FieldMapping(DYNAMIC_KEY_FILENAME),
        FieldMapping(DYNAMIC_KEY_WIDTH),
        FieldMapping(DYNAMIC_KEY_HEIGHT),
    )

    def calculate_dynamic_value(self, context: TransformContext, key: str) -> Any:
        data = context.get_relation(context.get_source(), "data")
        if data is None:
            return None

        if key == self.DYNAMIC_KEY_FILENAME:
            return data.filename
        if key == self.DYNAMIC_KEY_WIDTH:
            return data.width
        if key == self.DYNAMIC_KEY_HEIGHT:
            return data.height

        return None

    def collect_links(self, context: TransformContext) -> dict[str, str]:
        attachment = context.get_source()
        links = {
            self.LINK_PERMALINK: self.build_public_link(
                "attachments", attachment, {"hash": attachment.temp_hash}
            ),
            self.LINK_DETAIL: self.build_api_link("attachments", attachment),
        }

        data = context.get_relation(attachment, "data")
        if data is not None and data.has_thumbnail:
            links[self.LINK_THUMBNAIL] = data.thumbnail_url

        return links

    def collect_permissions(self, context: TransformContext) -> dict[str, bool]:
        attachment = context.get_source()
        visitor = context.visitor
        data = context.get_relation(attachment, "data")

        return {
            self.PERM_VIEW: True,
            self.PERM_DELETE: bool(
                visitor.user_id and data is not None and data.user_id == visitor.user_id
            ),
        }

    def on_transform_entities(self, context, entities):
        self.call_on_transform_entities_for_relation(
            context, entities, "data", "data", cascade=False
        )

        return super().on_transform_entities(context, entities)


__all__ = ["AttachmentHandler"]
