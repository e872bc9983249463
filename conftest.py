"""
Pytest configuration for Django tests with SQLite.

Uses SQLite in-memory database for fast testing - no Docker required.
"""

import os

import pytest

# Set test settings module before importing Django
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "forumapi.settings_test")


@pytest.fixture
def users(db):
    """Create three forum members keyed by username."""
    from forum.models import User

    return {
        name: User.objects.create(username=name, register_date=1000)
        for name in ("alice", "bob", "carol")
    }


@pytest.fixture
def make_conversation(db):
    """Factory building a conversation with messages and membership records.

    Every member gets a recipient record (state and last-read date can be
    overridden per username); only active members get an inbox entry.
    """
    from forum.models import (
        ConversationMaster,
        ConversationMessage,
        ConversationRecipient,
        ConversationUser,
    )

    def _make(
        starter,
        others=(),
        title="Weekend plans",
        bodies=("Are we still on for Saturday?", "Yes, see you there"),
        start_date=1000,
        states=None,
        last_read=None,
        conversation_open=True,
    ):
        states = states or {}
        last_read = last_read or {}

        conversation = ConversationMaster.objects.create(
            title=title,
            user=starter,
            username=starter.username,
            start_date=start_date,
            last_message_date=start_date,
            conversation_open=conversation_open,
        )

        messages = []
        for offset, body in enumerate(bodies):
            author = others[0] if (offset % 2 and others) else starter
            messages.append(
                ConversationMessage.objects.create(
                    conversation=conversation,
                    user=author,
                    username=author.username,
                    message=body,
                    message_date=start_date + offset * 100,
                )
            )

        if messages:
            conversation.first_message = messages[0]
            conversation.last_message = messages[-1]
            conversation.last_message_date = messages[-1].message_date
            conversation.reply_count = len(messages) - 1

        members = [starter, *others]
        conversation.recipient_count = len(members)
        conversation.save()

        for member in members:
            state = states.get(member.username, ConversationRecipient.STATE_ACTIVE)
            ConversationRecipient.objects.create(
                conversation=conversation,
                user=member,
                recipient_state=state,
                last_read_date=last_read.get(member.username, 0),
            )
            if state == ConversationRecipient.STATE_ACTIVE:
                ConversationUser.objects.create(
                    conversation=conversation,
                    owner_user=member,
                    last_message_date=conversation.last_message_date,
                )

        return conversation

    return _make


@pytest.fixture
def attach(db):
    """Factory attaching a stored file to a message."""
    from forum.models import Attachment, AttachmentData

    def _attach(
        message,
        filename="photo.jpg",
        width=800,
        height=600,
        thumbnail_width=200,
        thumbnail_height=150,
        temp_hash="abc123",
    ):
        data = AttachmentData.objects.create(
            user=message.user,
            filename=filename,
            file_size=2048,
            file_hash="f00dcafe",
            width=width,
            height=height,
            thumbnail_width=thumbnail_width,
            thumbnail_height=thumbnail_height,
        )
        attachment = Attachment.objects.create(
            data=data,
            message=message,
            attach_date=message.message_date,
            temp_hash=temp_hash,
        )
        message.attach_count += 1
        message.save(update_fields=["attach_count"])
        return attachment

    return _attach
