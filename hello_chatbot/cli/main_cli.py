# hello_chatbot/cli/main_cli.py
import typer
from . import admin_cli
from . import chat_cli

# Main CLI application with help enabled when no arguments are provided
app = typer.Typer(
    name="hello-chatbot",
    help="Hello Chatbot Command Line Interface.",
    no_args_is_help=True
)

app.add_typer(admin_cli.app, name="admin")
app.add_typer(chat_cli.app, name="chat")


@app.callback()
def main_callback():
    """
    Hello Chatbot main CLI application.
    Use 'hello-chatbot admin --help' for admin commands and
    'hello-chatbot chat --help' to talk to the assistant.
    """
    pass


def cli_entry_point():
    """Entry point function for console script registration in pyproject.toml"""
    app()


if __name__ == "__main__":
    cli_entry_point()
