"""Tests for the API templater and attachment tag rendering."""

import pytest

from forum.models import Attachment, AttachmentData
from projection.templater import (
    ATTACHMENT_TEMPLATE,
    ATTACH_TAG_PATTERN,
    ApiTemplater,
    add_dimensions_by_src,
)


@pytest.fixture
def data():
    return AttachmentData(
        data_id=1234,
        filename="photo.jpg",
        file_hash="f00",
        width=800,
        height=600,
        thumbnail_width=200,
        thumbnail_height=150,
    )


@pytest.fixture
def attachment(data):
    return Attachment(attachment_id=7, data=data, temp_hash="abc")


class TestAddDimensionsBySrc:
    """Dimension attributes are only added to an unambiguous src."""

    def test_single_occurrence(self):
        html = '<img src="X" alt="" />'

        result = add_dimensions_by_src(html, 'src="X"', 100, 200)

        assert result == '<img src="X" height="100" width="200" alt="" />'

    def test_two_occurrences_unchanged(self):
        html = '<img src="X" /><img src="X" />'

        assert add_dimensions_by_src(html, 'src="X"', 100, 200) == html

    def test_no_occurrence_unchanged(self):
        html = '<img src="Y" />'

        assert add_dimensions_by_src(html, 'src="X"', 100, 200) == html


class TestAttachTagPattern:
    """Tests for the attachment tag pattern."""

    def test_matches_thumbnail_and_full_modes(self):
        thumb = ATTACH_TAG_PATTERN.search("see [ATTACH]12[/ATTACH]")
        full = ATTACH_TAG_PATTERN.search("see [attach=full]12[/attach]")

        assert thumb.group("attachment_id") == "12"
        assert thumb.group("mode") is None
        assert full.group("attachment_id") == "12"
        assert full.group("mode") == "full"

    def test_ignores_non_numeric_ids(self):
        assert ATTACH_TAG_PATTERN.search("[ATTACH]abc[/ATTACH]") is None


class TestApiTemplater:
    """Attachment output is rewritten to API links with dimensions."""

    def test_thumbnail_mode(self, attachment, data):
        html = ApiTemplater().render_attachment(attachment, data)

        assert 'href="https://forum.example.com/api/attachments/7/?hash=abc"' in html
        assert (
            'src="https://forum.example.com/data/attachments/1/1234-f00.jpg" '
            'height="150" width="200"'
        ) in html
        assert "https://forum.example.com/attachments/" not in html

    def test_full_mode(self, attachment, data):
        html = ApiTemplater().render_attachment(attachment, data, full=True)

        assert html.startswith("<img ")
        assert (
            'src="https://forum.example.com/api/attachments/7/?hash=abc" '
            'height="600" width="800"'
        ) in html
        assert 'class="bbImage"' in html

    def test_without_thumbnail_keeps_public_link(self, attachment, data):
        data.thumbnail_width = 0
        data.thumbnail_height = 0

        html = ApiTemplater().render_attachment(attachment, data)

        assert 'src="https://forum.example.com/attachments/7/?hash=abc"' in html
        assert "width=" not in html

    def test_params_without_attachment_untouched(self, data):
        html = ApiTemplater().render_template(
            ATTACHMENT_TEMPLATE,
            {
                "data": data,
                "full": True,
                "attachment_url": "https://forum.example.com/attachments/7/",
            },
        )

        assert 'src="https://forum.example.com/attachments/7/"' in html
        assert "height=" not in html
