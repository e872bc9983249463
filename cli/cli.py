"""forumapi CLI - Main entry point."""

import typer

from cli.commands.conversations import conversations_app

# Create main Typer app
app = typer.Typer(
    name="forumapi",
    help="forumapi CLI - inspect API projections of forum entities",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

# Register command groups
app.add_typer(conversations_app, name="conversations")


@app.callback()
def main_callback():
    """forumapi CLI for previewing projected API output."""
    pass


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
