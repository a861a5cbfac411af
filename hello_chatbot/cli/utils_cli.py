# hello_chatbot/cli/utils_cli.py
import requests
import typer
import json
from typing import Optional, Dict, Any, Union, List

from . import config


def _admin_headers(endpoint: str) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    if config.HELLO_CHATBOT_CLI_ADMIN_API_KEY:
        headers["X-Admin-API-Key"] = config.HELLO_CHATBOT_CLI_ADMIN_API_KEY
    elif "/admin/" in endpoint:
        typer.secho(
            "CLI: Warning - ADMIN_API_KEY not set in .env for CLI. Admin API calls might fail.",
            fg=typer.colors.YELLOW
        )
    return headers


def make_api_request(
    method: str,
    endpoint: str,
    json_payload: Optional[Dict[str, Any]] = None,
    expected_status: Union[int, List[int]] = 200,
    verbose: bool = True
) -> Any:
    """
    Makes an HTTP request to the Hello Chatbot service and returns the decoded JSON body.

    Sends the admin API key when configured. Any unexpected status, connection
    error or undecodable body is reported and ends the command with exit code 1.
    """
    full_url = f"{config.HELLO_CHATBOT_CLI_API_BASE_URL}{endpoint}"
    headers = _admin_headers(endpoint)

    if verbose:
        typer.echo(f"CLI: {method.upper()} {full_url}")
        if json_payload:
            # Mask secret fields before echoing
            log_payload = {
                k: ("*******" if k in ("api_token", "oauth_client_secret") and v else v)
                for k, v in json_payload.items()
            }
            typer.echo(f"CLI: JSON Payload: {json.dumps(log_payload, indent=2)}")

    try:
        response = requests.request(
            method,
            full_url,
            json=json_payload,
            headers=headers,
            timeout=config.HELLO_CHATBOT_CLI_REQUEST_TIMEOUT
        )
    except requests.exceptions.ConnectionError as e:
        typer.secho(
            f"CLI: Connection Error - Could not connect to API at {full_url}. Is the server running? Error: {e}",
            fg=typer.colors.RED
        )
        raise typer.Exit(code=1)
    except requests.exceptions.RequestException as e:
        typer.secho(f"CLI: Request Error - {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if verbose:
        typer.echo(f"CLI: Response Status: {response.status_code}")

    expected_statuses = [expected_status] if isinstance(expected_status, int) else expected_status
    if response.status_code not in expected_statuses:
        err_msg = f"CLI: API Error - Expected status {expected_status}, got {response.status_code}."
        try:
            err_data = response.json()
            err_msg += f" Detail: {err_data.get('detail', response.text)}"
        except ValueError:
            err_msg += f" Raw response: {response.text}"
        typer.secho(err_msg, fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if response.status_code == 204 or not response.content:
        if verbose:
            typer.secho(f"CLI: Success (Status {response.status_code}, No Content).", fg=typer.colors.GREEN)
        return None

    try:
        return response.json()
    except ValueError:
        typer.secho(
            f"CLI: Error - Could not decode JSON response. Raw text: {response.text}",
            fg=typer.colors.RED
        )
        raise typer.Exit(code=1)


def print_json(data: Any) -> None:
    typer.echo(typer.style("CLI: Response JSON:", fg=typer.colors.CYAN))
    typer.echo(json.dumps(data, indent=2))
