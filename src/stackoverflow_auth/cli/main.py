import click

from stackoverflow_auth.cli.authorize import authorize_url
from stackoverflow_auth.cli.config import config
from stackoverflow_auth.cli.serve import serve
from stackoverflow_auth.version import __version__


@click.group()
@click.version_option(__version__, prog_name="stackoverflow-auth")
def cli() -> None:
    """stackoverflow-auth - Stack Exchange OAuth2 strategy tools."""


cli.add_command(config)
cli.add_command(authorize_url)
cli.add_command(serve)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
