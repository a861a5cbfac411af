# hello_chatbot/cli/admin_cli.py
import typer
from typing import Optional, Annotated

from .utils_cli import make_api_request, print_json
from ..utils.security import generate_fernet_key

app = typer.Typer(
    name="admin",
    help="Hello Chatbot Administrative Commands.",
    no_args_is_help=True
)

token_app = typer.Typer(
    name="token",
    help="Inspect and manage the OAuth2 access token.",
    no_args_is_help=True
)
options_app = typer.Typer(
    name="options",
    help="Show and change chatbot options.",
    no_args_is_help=True
)

app.add_typer(token_app, name="token")
app.add_typer(options_app, name="options")


@app.callback()
def admin_callback():
    """
    Hello Chatbot Admin CLI. All commands call the admin API and need
    ADMIN_API_KEY in the environment or .env file.
    """
    pass


@token_app.command("status")
def token_status():
    """Show whether the stored token is valid, expiring soon or expired."""
    data = make_api_request("GET", "/admin/oauth/status")
    print_json(data)

    color = {
        "valid": typer.colors.GREEN,
        "expiring_soon": typer.colors.YELLOW,
    }.get(data.get("status"), typer.colors.RED)
    summary = data.get("message", "")
    if data.get("human_remaining"):
        summary += f" ({data['human_remaining']})"
    typer.secho(summary, fg=color)


@token_app.command("test")
def token_test():
    """Request a token with the current OAuth2 configuration."""
    data = make_api_request("POST", "/admin/oauth/test")
    print_json(data)
    typer.secho(data.get("message", ""), fg=typer.colors.GREEN if data.get("success") else typer.colors.RED)
    if not data.get("success"):
        raise typer.Exit(code=1)


@token_app.command("refresh")
def token_refresh():
    """Discard the cached token and fetch a new one now."""
    data = make_api_request("POST", "/admin/oauth/refresh")
    print_json(data)
    typer.secho("Token refreshed.", fg=typer.colors.GREEN)


@token_app.command("clear")
def token_clear():
    """Invalidate the cached token. The next chat message fetches a new one."""
    make_api_request("POST", "/admin/oauth/clear", expected_status=204)
    typer.secho("Token cache cleared.", fg=typer.colors.GREEN)


@options_app.command("show")
def options_show():
    """Show current options. Secrets are masked."""
    print_json(make_api_request("GET", "/admin/options"))


@options_app.command("set")
def options_set(
    enabled: Annotated[
        Optional[bool],
        typer.Option("--enabled/--disabled", help="Turn the chat widget on or off.")
    ] = None,
    api_endpoint: Annotated[
        Optional[str],
        typer.Option("--api-endpoint", help="Knowledge-base ask endpoint URL.")
    ] = None,
    api_token: Annotated[
        Optional[str],
        typer.Option("--api-token", help="Manual bearer token, used when OAuth2 is off or fails.")
    ] = None,
    welcome_message: Annotated[
        Optional[str],
        typer.Option("--welcome-message", help="First message shown in a new chat.")
    ] = None,
    position: Annotated[
        Optional[str],
        typer.Option("--position", help="Widget position: bottom-right or bottom-left.")
    ] = None,
    use_oauth: Annotated[
        Optional[bool],
        typer.Option("--use-oauth/--no-oauth", help="Fetch tokens with the OAuth2 client-credentials grant.")
    ] = None,
    oauth_client_id: Annotated[Optional[str], typer.Option("--oauth-client-id")] = None,
    oauth_client_secret: Annotated[Optional[str], typer.Option("--oauth-client-secret")] = None,
    oauth_tenant_id: Annotated[Optional[str], typer.Option("--oauth-tenant-id")] = None,
    oauth_scope: Annotated[Optional[str], typer.Option("--oauth-scope")] = None,
    oauth_endpoint: Annotated[
        Optional[str],
        typer.Option("--oauth-endpoint", help="OAuth2 token endpoint URL.")
    ] = None
):
    """Update options. Only the given options are changed."""
    candidates = {
        "enabled": enabled,
        "api_endpoint": api_endpoint,
        "api_token": api_token,
        "welcome_message": welcome_message,
        "position": position,
        "use_oauth": use_oauth,
        "oauth_client_id": oauth_client_id,
        "oauth_client_secret": oauth_client_secret,
        "oauth_tenant_id": oauth_tenant_id,
        "oauth_scope": oauth_scope,
        "oauth_endpoint": oauth_endpoint,
    }
    payload = {k: v for k, v in candidates.items() if v is not None}

    if not payload:
        typer.secho("No options to update. Use --help to see the available options.", fg=typer.colors.YELLOW)
        raise typer.Exit()

    print_json(make_api_request("PUT", "/admin/options", json_payload=payload))


@app.command("test-connection")
def test_connection():
    """Send a test question to the knowledge-base endpoint."""
    data = make_api_request("POST", "/admin/api/test-connection")
    typer.secho(data.get("message", ""), fg=typer.colors.GREEN if data.get("success") else typer.colors.RED)
    if not data.get("success"):
        raise typer.Exit(code=1)


@app.command("generate-key")
def generate_key():
    """Generate a Fernet key for encrypting secret options."""
    typer.echo("Generated Fernet Key:")
    typer.echo(generate_fernet_key())
    typer.echo("Add this to your .env file as HELLO_CHATBOT_ENCRYPTION_KEY")


if __name__ == "__main__":
    app()
