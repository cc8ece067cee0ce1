from pathlib import Path

import click
import uvicorn

from stackoverflow_auth.app import create_app
from stackoverflow_auth.cli.utils import configure_logging, load_resolved_config, output_error


@click.command(name="serve")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Path to the config file",
)
@click.option("--host", default="localhost", show_default=True, help="Interface to bind")
@click.option("--port", default=4000, show_default=True, type=int, help="Port to bind")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def serve(config_path: Path | None, host: str, port: int, debug: bool) -> None:
    """Serve a demo app exposing /auth/stackoverflow.

    Open http://localhost:4000/ and follow the sign-in link. The callback
    URL registered with Stack Exchange must match the host and port used.

    \b
    Examples:
        stackoverflow-auth serve
        stackoverflow-auth serve --port 8080 --debug
    """
    configure_logging(debug, log_level="INFO")
    try:
        resolved = load_resolved_config(config_path)
    except Exception as e:
        output_error(e, debug=debug)
        return

    click.echo(f"Serving on http://{host}:{port}/")
    uvicorn.run(create_app(resolved), host=host, port=port, log_level="debug" if debug else "info")
