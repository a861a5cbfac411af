# hello_chatbot/cli/chat_cli.py
import asyncio
import typer
import requests
from typing import Awaitable, Callable, Optional, Annotated, TypeVar

from . import config
from ..relay.errors import KnowledgeBaseRequestError
from ..relay.models import AskResponse, WidgetConfig
from ..sessions import ChatConversation, ChatSession, SessionStore, SQLiteLocalStorage
from ..storage.sqlite_base import init_sqlite_db, open_sqlite_connection

app = typer.Typer(
    name="chat",
    help="Talk to the assistant. Conversations are kept on this machine.",
    no_args_is_help=True
)

T = TypeVar("T")


def post_message(question: str, page_context: str = "") -> AskResponse:
    """Relay one question through the service's public chat endpoint."""
    url = f"{config.HELLO_CHATBOT_CLI_API_BASE_URL}/chat/message"
    try:
        response = requests.post(
            url,
            json={"message": question, "page_context": page_context},
            timeout=config.HELLO_CHATBOT_CLI_REQUEST_TIMEOUT
        )
    except requests.exceptions.RequestException as e:
        raise KnowledgeBaseRequestError(f"Could not reach {url}: {e}") from e

    if response.status_code != 200:
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        raise KnowledgeBaseRequestError(f"Service returned {response.status_code}: {detail}", status_code=response.status_code)

    try:
        return AskResponse.model_validate(response.json())
    except ValueError as e:
        raise KnowledgeBaseRequestError("Invalid response from chatbot service") from e


async def ask_service(question: str, page_context: str = "") -> AskResponse:
    # requests blocks; keep the event loop free while waiting on the service
    return await asyncio.to_thread(post_message, question, page_context)


def fetch_widget_config() -> Optional[WidgetConfig]:
    """Public widget settings from the service, or None when they can't be fetched."""
    url = f"{config.HELLO_CHATBOT_CLI_API_BASE_URL}/chat/config"
    try:
        response = requests.get(url, timeout=config.HELLO_CHATBOT_CLI_REQUEST_TIMEOUT)
        response.raise_for_status()
        return WidgetConfig.model_validate(response.json())
    except (requests.exceptions.RequestException, ValueError) as e:
        typer.secho(f"Could not load chat settings from {url}: {e}", fg=typer.colors.YELLOW, err=True)
        return None


async def greet(conversation: ChatConversation) -> None:
    """Put the service's welcome message at the top of an empty active conversation."""
    widget = await asyncio.to_thread(fetch_widget_config)
    if widget is None or not widget.enabled:
        return
    await conversation.show_welcome_message(widget.welcome_message, widget.welcome_actions or None)


def run_with_store(action: Callable[[SessionStore], Awaitable[T]]) -> T:
    """Open the local conversation database, run `action` against a SessionStore and close it."""
    conn = open_sqlite_connection(config.HELLO_CHATBOT_CLI_STORAGE_PATH)

    async def _main() -> T:
        await init_sqlite_db(conn)
        store = SessionStore(SQLiteLocalStorage(conn))
        return await action(store)

    try:
        return asyncio.run(_main())
    finally:
        conn.close()


def _print_session(session: ChatSession) -> None:
    typer.secho(f"{session.title}  [{session.id}]", bold=True)
    if not session.messages:
        typer.echo("  (no messages)")
    for message in session.messages:
        speaker = "You" if message.role == "user" else "Assistant"
        color = typer.colors.CYAN if message.role == "user" else typer.colors.GREEN
        typer.secho(f"{speaker}: ", fg=color, nl=False)
        typer.echo(message.content)
        for ref in message.references or []:
            typer.echo(f"    - {ref.title}: {ref.url}")
        for action in message.actions or []:
            typer.echo(f"    > {action}")


def _require(session: Optional[T], session_id: str) -> T:
    if session is None:
        typer.secho(f"Session '{session_id}' not found.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return session


@app.command("send")
def send(
    message: Annotated[str, typer.Argument(help="Your question.")],
    page_context: Annotated[
        str,
        typer.Option("--page-context", help="Where the question is asked from, e.g. 'Pricing (/pricing)'.")
    ] = ""
):
    """Send a message in the active conversation and print the reply."""
    if not message.strip():
        typer.secho("Message must not be empty.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    async def _send(store: SessionStore):
        conversation = ChatConversation(store, ask_service)
        await conversation.start()
        await greet(conversation)
        return await conversation.send_message(message.strip(), page_context)

    reply = run_with_store(_send)
    typer.secho("Assistant: ", fg=typer.colors.GREEN, nl=False)
    typer.echo(reply.content)
    for ref in reply.references or []:
        typer.echo(f"    - {ref.title}: {ref.url}")


@app.command("new")
def new_chat():
    """Start a new conversation and make it active."""
    async def _new(store: SessionStore):
        conversation = ChatConversation(store, ask_service)
        session = await conversation.new_chat()
        await greet(conversation)
        return session

    session = run_with_store(_new)
    typer.secho(f"Started new chat [{session.id}].", fg=typer.colors.GREEN)


@app.command("list")
def list_sessions():
    """List conversations, most recently updated first."""
    async def _list(store: SessionStore):
        state = await store.load_state()
        return await store.get_all_sessions(), state.active_session_id

    sessions, active_id = run_with_store(_list)
    if not sessions:
        typer.echo("No conversations yet.")
        return
    for session in sessions:
        marker = "*" if session.id == active_id else " "
        typer.echo(
            f"{marker} {session.id}  {session.title:<30}  "
            f"{len(session.messages):>3} msgs  updated {session.updated:%Y-%m-%d %H:%M}"
        )


@app.command("show")
def show(
    session_id: Annotated[
        Optional[str],
        typer.Argument(help="Conversation to show. Defaults to the active one.")
    ] = None
):
    """Print a conversation's messages."""
    async def _show(store: SessionStore):
        if session_id:
            return await store.get_session(session_id)
        return await store.get_or_create_active_session()

    _print_session(_require(run_with_store(_show), session_id or ""))


@app.command("switch")
def switch(session_id: Annotated[str, typer.Argument(help="Conversation to make active.")]):
    """Make another conversation the active one."""
    async def _switch(store: SessionStore):
        return await ChatConversation(store, ask_service).switch_to(session_id)

    session = _require(run_with_store(_switch), session_id)
    typer.secho(f"Switched to '{session.title}'.", fg=typer.colors.GREEN)


@app.command("rename")
def rename(
    session_id: Annotated[str, typer.Argument(help="Conversation to rename.")],
    title: Annotated[str, typer.Argument(help="New title.")]
):
    """Rename a conversation."""
    async def _rename(store: SessionStore):
        return await store.rename_session(session_id, title)

    session = _require(run_with_store(_rename), session_id)
    typer.secho(f"Renamed to '{session.title}'.", fg=typer.colors.GREEN)


@app.command("delete")
def delete(
    session_id: Annotated[str, typer.Argument(help="Conversation to delete.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False
):
    """Delete a conversation."""
    if not yes:
        typer.confirm(f"Delete conversation '{session_id}'?", abort=True)

    async def _delete(store: SessionStore):
        return await store.delete_session(session_id)

    if not run_with_store(_delete):
        typer.secho(f"Session '{session_id}' not found.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho("Conversation deleted.", fg=typer.colors.GREEN)


@app.command("cleanup")
def cleanup():
    """Remove conversations that have not been updated within the retention period."""
    async def _cleanup(store: SessionStore):
        return await store.cleanup_old_sessions()

    removed = run_with_store(_cleanup)
    typer.secho(f"Removed {removed} old conversation(s).", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
