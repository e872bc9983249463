"""
Database models for forum conversations, messages and attachments.

These models are the entity store the projection engine reads from. Dates
are stored as unix timestamps (integers), and conversation membership is
split between recipient records (read state per user) and conversation-user
records (inbox entries per owner).
"""

from django.conf import settings
from django.db import models


class User(models.Model):
    """A forum member."""

    user_id = models.AutoField(primary_key=True)
    username = models.CharField(max_length=50, unique=True)
    register_date = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['user_id']

    def __str__(self):
        return self.username


class UserIgnored(models.Model):
    """
    An ignore relationship: `user` does not want to see content from
    `ignored_user`.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='ignoring',
    )
    ignored_user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='+',
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'ignored_user'], name='unique_user_ignored'
            ),
        ]

    def __str__(self):
        return f"{self.user_id} ignores {self.ignored_user_id}"


class ConversationMaster(models.Model):
    """
    A private conversation between two or more members.

    The first and last message are denormalized onto the conversation so a
    list of conversations can be rendered without touching every message.
    """

    conversation_id = models.AutoField(primary_key=True)
    title = models.CharField(max_length=150)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='started_conversations',
        help_text="Member who started this conversation"
    )
    username = models.CharField(max_length=50)
    start_date = models.PositiveIntegerField(default=0)
    open_invite = models.BooleanField(default=False)
    conversation_open = models.BooleanField(default=True)
    reply_count = models.PositiveIntegerField(default=0)
    recipient_count = models.PositiveIntegerField(default=0)
    first_message = models.ForeignKey(
        'ConversationMessage',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    last_message_date = models.PositiveIntegerField(default=0)
    last_message = models.ForeignKey(
        'ConversationMessage',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    class Meta:
        ordering = ['-last_message_date', 'conversation_id']

    def __str__(self):
        return f"{self.title} - {self.username}"

    def can_reply(self, visitor, membership):
        """
        Check whether the visitor may post a reply.

        Args:
            visitor: The acting Visitor
            membership: The visitor's ConversationUser record, or None

        Returns:
            bool: True for a logged-in member of an open conversation
        """
        if not visitor.user_id or membership is None:
            return False

        return self.conversation_open

    def can_upload_and_manage_attachments(self, visitor):
        """Check whether the visitor may attach files to replies."""
        if not visitor.user_id:
            return False

        return visitor.has_permission('upload_conversation_attachment')


class ConversationMessage(models.Model):
    """A single message in a conversation."""

    message_id = models.AutoField(primary_key=True)
    conversation = models.ForeignKey(
        ConversationMaster,
        on_delete=models.CASCADE,
        related_name='messages',
    )
    message_date = models.PositiveIntegerField(default=0)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='conversation_messages',
    )
    username = models.CharField(max_length=50)
    message = models.TextField()
    attach_count = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['message_date', 'message_id']

    def __str__(self):
        preview = self.message[:50] + ('...' if len(self.message) > 50 else '')
        return f"{self.username}: {preview}"

    def can_edit(self, visitor):
        """Authors may edit their own messages."""
        return bool(visitor.user_id) and visitor.user_id == self.user_id


class ConversationRecipient(models.Model):
    """Per-member read state for a conversation."""

    STATE_ACTIVE = 'active'
    STATE_DELETED = 'deleted'
    STATE_DELETED_IGNORED = 'deleted_ignored'

    STATE_CHOICES = [
        (STATE_ACTIVE, 'Active'),
        (STATE_DELETED, 'Deleted'),
        (STATE_DELETED_IGNORED, 'Deleted (ignored)'),
    ]

    conversation = models.ForeignKey(
        ConversationMaster,
        on_delete=models.CASCADE,
        related_name='recipients',
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='+',
    )
    recipient_state = models.CharField(
        max_length=20,
        choices=STATE_CHOICES,
        default=STATE_ACTIVE,
    )
    last_read_date = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['conversation', 'user'], name='unique_conversation_recipient'
            ),
        ]

    def __str__(self):
        return f"{self.user_id} in {self.conversation_id} ({self.recipient_state})"

    @property
    def is_deleted(self):
        return self.recipient_state in (self.STATE_DELETED, self.STATE_DELETED_IGNORED)


class ConversationUser(models.Model):
    """An inbox entry: one per conversation per owning member."""

    conversation = models.ForeignKey(
        ConversationMaster,
        on_delete=models.CASCADE,
        related_name='users',
    )
    owner_user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='+',
    )
    is_unread = models.BooleanField(default=False)
    is_starred = models.BooleanField(default=False)
    reply_count = models.PositiveIntegerField(default=0)
    last_message_date = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['conversation', 'owner_user'], name='unique_conversation_user'
            ),
        ]

    def __str__(self):
        return f"{self.owner_user_id} owns {self.conversation_id}"


class AttachmentData(models.Model):
    """The stored file behind one or more attachments."""

    data_id = models.AutoField(primary_key=True)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='+',
        help_text="Member who uploaded the file"
    )
    upload_date = models.PositiveIntegerField(default=0)
    filename = models.CharField(max_length=100)
    file_size = models.PositiveIntegerField(default=0)
    file_hash = models.CharField(max_length=32)
    width = models.PositiveIntegerField(default=0)
    height = models.PositiveIntegerField(default=0)
    thumbnail_width = models.PositiveIntegerField(default=0)
    thumbnail_height = models.PositiveIntegerField(default=0)

    def __str__(self):
        return self.filename

    @property
    def has_thumbnail(self):
        return self.thumbnail_width > 0

    @property
    def thumbnail_url(self):
        """
        Absolute URL of the generated thumbnail.

        Returns:
            str: URL under PROJECTION_DATA_BASE_URL, or an empty string when
            the file has no thumbnail
        """
        if not self.has_thumbnail:
            return ''

        base_url = getattr(settings, 'PROJECTION_DATA_BASE_URL', '/data/')
        group = self.data_id // 1000
        return f"{base_url}attachments/{group}/{self.data_id}-{self.file_hash}.jpg"


class Attachment(models.Model):
    """A file attached to a conversation message."""

    attachment_id = models.AutoField(primary_key=True)
    data = models.ForeignKey(
        AttachmentData,
        on_delete=models.CASCADE,
        related_name='attachments',
    )
    message = models.ForeignKey(
        ConversationMessage,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='attachments',
    )
    attach_date = models.PositiveIntegerField(default=0)
    temp_hash = models.CharField(max_length=32, blank=True)
    view_count = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['attach_date', 'attachment_id']

    def __str__(self):
        return f"Attachment {self.attachment_id}"
