"""Conversation projection commands."""

from typing import List, Optional

import typer
from django.apps import apps

from cli.utils.django_context import with_django
from cli.utils.formatting import (
    FormatOption,
    OutputFormat,
    console,
    create_table,
    format_flag,
    print_error,
    print_json,
)
from projection import ProjectionError, Selector, transform

# Create conversations command group
conversations_app = typer.Typer(
    name="conversations",
    help="Preview conversation API output",
    rich_markup_mode="rich",
)

UserOption = typer.Option(
    None, "--user", "-u", help="Username to act as (default: guest)"
)
IncludeOption = typer.Option(
    None, "--include", "-i", help="Comma-separated optional fields to include"
)
ExcludeOption = typer.Option(
    None, "--exclude", "-x", help="Comma-separated fields to suppress"
)
PermissionOption = typer.Option(
    None, "--permission", "-p", help="Permission granted to the visitor (repeatable)"
)


def _get_visitor(username: str | None, permissions: list[str] | None):
    from forum.visitor import Visitor

    if not username:
        return Visitor.guest()

    User = apps.get_model("forum", "User")
    try:
        user = User.objects.get(username=username)
    except User.DoesNotExist:
        print_error(f"User not found: {username}")
        raise typer.Exit(code=1)

    return Visitor.for_user(user, permissions or ())


@conversations_app.command(name="list")
@with_django
def list_conversations(
    user: Optional[str] = UserOption,
    include: Optional[str] = IncludeOption,
    exclude: Optional[str] = ExcludeOption,
    permission: Optional[List[str]] = PermissionOption,
    limit: int = typer.Option(20, "--limit", "-l", help="Maximum number of results"),
    format: OutputFormat = FormatOption,
):
    """List conversations as the API would return them."""
    ConversationMaster = apps.get_model("forum", "ConversationMaster")

    visitor = _get_visitor(user, permission)
    selector = Selector.from_fields(include, exclude)

    conversations = ConversationMaster.objects.all()
    if visitor.user_id:
        conversations = conversations.filter(recipients__user=visitor.user_id)

    # Resolve the page first so the projection finder filters by key set
    conversation_ids = list(conversations.values_list("conversation_id", flat=True)[:limit])
    finder = ConversationMaster.objects.filter(conversation_id__in=conversation_ids)

    try:
        data = transform(finder, visitor, selector)
    except ProjectionError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    if format == OutputFormat.JSON:
        print_json({"conversations": data})
        return

    if not data:
        console.print("No conversations found.", style="yellow")
        return

    table = create_table(
        "Conversations",
        [
            ("ID", "cyan", True),
            ("Title", "bold"),
            ("Creator", None),
            ("Messages", None),
            ("Open", None),
            ("New", None),
        ],
    )
    for item in data:
        table.add_row(
            str(item.get("conversation_id", "")),
            item.get("conversation_title", ""),
            item.get("creator_username", ""),
            str(item.get("conversation_message_count", "")),
            format_flag(item.get("conversation_is_open")),
            format_flag(item.get("conversation_has_new_message")),
        )
    console.print(table)


@conversations_app.command(name="show")
@with_django
def show_conversation(
    conversation_id: int = typer.Argument(..., help="Conversation ID"),
    user: Optional[str] = UserOption,
    include: Optional[str] = IncludeOption,
    exclude: Optional[str] = ExcludeOption,
    permission: Optional[List[str]] = PermissionOption,
):
    """Show one conversation as JSON."""
    ConversationMaster = apps.get_model("forum", "ConversationMaster")

    visitor = _get_visitor(user, permission)
    selector = Selector.from_fields(include, exclude)

    finder = ConversationMaster.objects.filter(conversation_id=conversation_id)
    try:
        data = transform(finder, visitor, selector)
    except ProjectionError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    if not data:
        print_error(f"Conversation not found: {conversation_id}")
        raise typer.Exit(code=1)

    print_json({"conversation": data[0]})
