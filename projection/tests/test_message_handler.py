"""Tests for projecting messages and their attachments."""

import pytest

from forum.models import ConversationMessage
from forum.visitor import Visitor
from projection import Selector, transform


@pytest.fixture
def conversation(users, make_conversation):
    return make_conversation(
        users["alice"],
        [users["bob"]],
        bodies=("Photos from the trip\n[ATTACH]{thumb}[/ATTACH] [ATTACH=full]{full}[/ATTACH]",),
    )


@pytest.fixture
def message(conversation, attach):
    message = conversation.first_message
    thumb = attach(message, filename="beach.jpg", temp_hash="h1")
    full = attach(message, filename="sunset.png", width=1024, height=768, temp_hash="h2")
    message.message = message.message.format(thumb=thumb.pk, full=full.pk)
    message.save(update_fields=["message"])
    return message


def transform_messages(visitor, selector=None, **filters):
    return transform(ConversationMessage.objects.filter(**filters), visitor, selector)


@pytest.mark.django_db
class TestMessageOutput:
    """Standalone message projection."""

    def test_static_fields(self, users, message):
        data = transform_messages(Visitor.guest(), pk=message.pk)[0]

        assert data["message_id"] == message.pk
        assert data["conversation_id"] == message.conversation_id
        assert data["creator_user_id"] == users["alice"].user_id
        assert data["creator_username"] == "alice"
        assert data["message_attachment_count"] == 2

    def test_standalone_message_links_to_conversation(self, message):
        links = transform_messages(Visitor.guest(), pk=message.pk)[0]["links"]

        assert links == {
            "permalink": f"https://forum.example.com/conversations/messages/{message.pk}/",
            "detail": f"https://forum.example.com/api/conversation-messages/{message.pk}/",
            "conversation": (
                f"https://forum.example.com/api/conversations/{message.conversation_id}/"
            ),
        }

    def test_author_can_edit(self, users, message):
        author = transform_messages(Visitor.for_user(users["alice"]), pk=message.pk)[0]
        other = transform_messages(Visitor.for_user(users["bob"]), pk=message.pk)[0]

        assert author["permissions"] == {"edit": True, "delete": False}
        assert other["permissions"]["edit"] is False

    def test_body_html_escapes_and_breaks_lines(self, users, make_conversation):
        conversation = make_conversation(users["alice"], bodies=("1 < 2\nsecond line",))

        data = transform_messages(Visitor.guest(), pk=conversation.first_message_id)[0]

        assert data["message_body_html"] == "1 &lt; 2<br />\nsecond line"


@pytest.mark.django_db
class TestAttachments:
    """Attachments are hydrated in bulk and rendered for the API."""

    def test_attachments_listed(self, users, message):
        visitor = Visitor.for_user(users["alice"])

        attachments = transform_messages(visitor, pk=message.pk)[0]["attachments"]

        assert [a["filename"] for a in attachments] == ["beach.jpg", "sunset.png"]
        assert attachments[1]["attachment_width"] == 1024
        assert attachments[1]["attachment_height"] == 768
        assert attachments[0]["permissions"] == {"view": True, "delete": True}

    def test_attachment_links(self, message):
        attachment = transform_messages(Visitor.guest(), pk=message.pk)[0]["attachments"][0]
        aid = attachment["attachment_id"]

        assert attachment["links"]["permalink"] == (
            f"https://forum.example.com/attachments/{aid}/?hash=h1"
        )
        assert attachment["links"]["detail"] == f"https://forum.example.com/api/attachments/{aid}/"
        assert attachment["links"]["thumbnail"].startswith(
            "https://forum.example.com/data/attachments/0/"
        )

    def test_only_uploader_can_delete(self, users, message):
        data = transform_messages(Visitor.for_user(users["bob"]), pk=message.pk)[0]

        assert all(a["permissions"]["delete"] is False for a in data["attachments"])

    def test_body_html_renders_attachment_tags(self, message):
        html = transform_messages(Visitor.guest(), pk=message.pk)[0]["message_body_html"]

        assert "[ATTACH" not in html
        assert 'class="attachmentThumbnail"' in html
        assert 'height="150" width="200"' in html
        assert 'class="bbImage"' in html
        assert 'height="768" width="1024"' in html
        assert "https://forum.example.com/api/attachments/" in html
        assert "https://forum.example.com/attachments/" not in html

    def test_unknown_attachment_tag_left_as_is(self, users, make_conversation):
        conversation = make_conversation(users["alice"], bodies=("[ATTACH]999[/ATTACH]",))

        data = transform_messages(Visitor.guest(), pk=conversation.first_message_id)[0]

        assert data["message_body_html"] == "[ATTACH]999[/ATTACH]"

    def test_constant_queries(self, users, message, make_conversation, attach, django_assert_num_queries):
        other = make_conversation(users["bob"], bodies=("More", "And more"))
        for extra in ConversationMessage.objects.filter(conversation=other):
            attach(extra)

        # messages, attachments, attachment data
        with django_assert_num_queries(3):
            data = transform_messages(Visitor.guest())

        assert len(data) == 3

    def test_excluding_attachments_and_html_skips_queries(self, message, django_assert_num_queries):
        with django_assert_num_queries(1):
            data = transform_messages(
                Visitor.guest(),
                Selector.from_fields(exclude="attachments,message_body_html"),
                pk=message.pk,
            )

        assert "attachments" not in data[0]
        assert "message_body_html" not in data[0]
