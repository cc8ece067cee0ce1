from pathlib import Path

import click

from stackoverflow_auth.cli.utils import (
    configure_logging,
    load_resolved_config,
    output_error,
    output_result,
)
from stackoverflow_auth.oauth import StackOverflowOAuthClient


@click.command(name="authorize-url")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Path to the config file",
)
@click.option("--scope", help="Comma-separated scopes (defaults to default_scope)")
@click.option("--state", help="Anti-forgery state value to forward")
@click.option(
    "--no-redirect-uri",
    is_flag=True,
    help="Omit redirect_uri from the URL (overrides send_redirect_uri)",
)
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def authorize_url(
    config_path: Path | None,
    scope: str | None,
    state: str | None,
    no_redirect_uri: bool,
    json_output: bool,
    debug: bool,
) -> None:
    """Print the Stack Exchange authorize URL.

    The configured ``redirect_uri`` is used as the callback.

    \b
    Examples:
        stackoverflow-auth authorize-url --scope read_inbox --state abc
        stackoverflow-auth authorize-url --no-redirect-uri
    """
    configure_logging(debug)
    try:
        resolved = load_resolved_config(config_path)
    except Exception as e:
        output_error(e, json_output, debug)
        return

    send_redirect_uri = resolved.send_redirect_uri and not no_redirect_uri
    url = StackOverflowOAuthClient(resolved).authorize_url(
        scope=scope if scope is not None else resolved.default_scope,
        redirect_uri=resolved.redirect_uri if send_redirect_uri else None,
        state=state,
    )
    output_result(url, json_output)
