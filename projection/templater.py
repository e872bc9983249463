"""Rewrites attachment links in rendered HTML for API consumers.

When the attachment tag template is rendered for an attachment with a
thumbnail, public attachment links are swapped for their API equivalents
and the image tags get width/height attributes from the stored file data.
"""

import logging
import re
from typing import Any, Optional

from django.template.loader import render_to_string
from django.utils.html import escape

from .links import build_api_link, build_public_link

logger = logging.getLogger(__name__)

ATTACHMENT_TEMPLATE = "forum/bb_code_tag_attach.html"

ATTACH_TAG_PATTERN = re.compile(
    r"\[ATTACH(?:=(?P<mode>full))?\](?P<attachment_id>\d+)\[/ATTACH\]",
    re.IGNORECASE,
)


def add_dimensions_by_src(html: str, src: str, height: Any, width: Any) -> str:
    """
    Append width and height attributes right after `src`.

    The rewrite only happens when `src` occurs exactly once; otherwise the
    HTML is returned unchanged. Width is inserted first, then `src` is found
    again and height is inserted, so the result reads
    ``src="..." height="H" width="W"``.
    """
    if html.count(src) != 1:
        logger.debug("Skipping dimension rewrite, %d occurrence(s) of %s", html.count(src), src)
        return html

    html = html.replace(src, f'{src} width="{width}"')
    html = html.replace(src, f'{src} height="{height}"')

    return html


class ApiTemplater:
    """Template renderer with API-specific post-processing."""

    def render_template(self, template_name: str, params: Optional[dict[str, Any]] = None) -> str:
        """
        Render a template, rewriting attachment output for the API.

        Args:
            template_name: Django template name
            params: Template context; the attachment template expects
                ``attachment`` and its hydrated ``data``

        Returns:
            Rendered HTML
        """
        params = params or {}
        output = render_to_string(template_name, params)

        attachment = params.get("attachment")
        data = params.get("data")
        if template_name != ATTACHMENT_TEMPLATE or attachment is None:
            return output
        if data is None or not data.has_thumbnail:
            return output

        link_args = {"hash": attachment.temp_hash}
        link_public = escape(build_public_link("attachments", attachment, link_args))
        link_api = escape(build_api_link("attachments", attachment, link_args))

        output = output.replace(link_public, link_api)
        output = add_dimensions_by_src(output, f'src="{link_api}"', data.height, data.width)

        src_thumbnail = f'src="{escape(data.thumbnail_url)}"'
        output = add_dimensions_by_src(
            output, src_thumbnail, data.thumbnail_height, data.thumbnail_width
        )

        return output

    def render_attachment(self, attachment: Any, data: Any, full: bool = False) -> str:
        return self.render_template(
            ATTACHMENT_TEMPLATE,
            {
                "attachment": attachment,
                "data": data,
                "full": full,
                "attachment_url": build_public_link(
                    "attachments", attachment, {"hash": attachment.temp_hash}
                ),
                "thumbnail_url": data.thumbnail_url if data is not None else "",
            },
        ).strip()


__all__ = [
    "ATTACHMENT_TEMPLATE",
    "ATTACH_TAG_PATTERN",
    "ApiTemplater",
    "add_dimensions_by_src",
]
