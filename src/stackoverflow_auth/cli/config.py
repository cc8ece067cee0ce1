from pathlib import Path

import click

from stackoverflow_auth.cli.utils import (
    configure_logging,
    load_resolved_config,
    output_error,
    output_result,
)


@click.command(name="config")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Path to the config file",
)
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def config(config_path: Path | None, json_output: bool, debug: bool) -> None:
    """Show the resolved strategy configuration.

    Defaults, environment variables and the config file are merged the same
    way the strategy does it. Secrets are masked.

    \b
    Examples:
        stackoverflow-auth config
        stackoverflow-auth config --config ./auth.yml --json-output
    """
    configure_logging(debug)
    try:
        resolved = load_resolved_config(config_path)
    except Exception as e:
        output_error(e, json_output, debug)
        return

    output_result(resolved.masked(), json_output)
