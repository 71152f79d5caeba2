import click

from ceremony_verifier.cli.identity import identity_group
from ceremony_verifier.cli.verifier import download, lock, run
from ceremony_verifier.lib.log import setup_logging


@click.group()
@click.option(
    "--log-level",
    envvar="CEREMONY_VERIFIER_LOG_LEVEL",
    default="INFO",
    show_default=True,
    help="Logging level for verifier output.",
)
def cli(log_level):
    """A verifier client for ceremony coordinators."""
    setup_logging(log_level)


# Add the identity group (which contains multiple subcommands)
cli.add_command(identity_group)

# Add verifier commands
cli.add_command(lock)
cli.add_command(download)
cli.add_command(run)


if __name__ == "__main__":
    cli()
