"""Tests for the Visitor identity object."""

import pytest

from forum.models import UserIgnored
from forum.visitor import Visitor


class TestGuest:
    def test_guest_defaults(self):
        visitor = Visitor.guest()

        assert visitor.is_guest
        assert visitor.user_id == 0
        assert visitor.is_ignoring(3) is False
        assert visitor.has_permission("upload_conversation_attachment") is False


@pytest.mark.django_db
class TestForUser:
    """Building a visitor from a member record."""

    def test_loads_ignore_list(self, users, django_assert_num_queries):
        UserIgnored.objects.create(user=users["alice"], ignored_user=users["bob"])
        UserIgnored.objects.create(user=users["carol"], ignored_user=users["alice"])

        with django_assert_num_queries(1):
            visitor = Visitor.for_user(users["alice"])

        assert not visitor.is_guest
        assert visitor.username == "alice"
        assert visitor.ignored_user_ids == frozenset({users["bob"].user_id})
        assert visitor.is_ignoring(users["bob"].user_id) is True
        assert visitor.is_ignoring(users["carol"].user_id) is False

    def test_zero_user_is_never_ignored(self, users):
        visitor = Visitor.for_user(users["alice"])

        assert visitor.is_ignoring(0) is False

    def test_permissions(self, users):
        visitor = Visitor.for_user(users["alice"], ["upload_conversation_attachment"])

        assert visitor.has_permission("upload_conversation_attachment") is True
        assert visitor.has_permission("delete_any") is False
