import click
import sys
from pathlib import Path

from ceremony_verifier.config import DEFAULT_VIEW_KEY_PATH
from ceremony_verifier.lib.auth import address_of
from ceremony_verifier.lib.errors import InvalidKey
from ceremony_verifier.lib.key_manager import KeyManager


@click.group("identity")
def identity_group():
    """Manages the verifier's view key."""
    pass


@identity_group.command("new")
@click.option(
    "--path",
    type=click.Path(dir_okay=False, writable=True),
    default=DEFAULT_VIEW_KEY_PATH,
    envvar="CEREMONY_VIEW_KEY_PATH",
    help="File to store the view key in.",
)
@click.option("--overwrite", is_flag=True, help="Overwrite an existing view key file.")
def identity_new(path, overwrite):
    """Creates a new view key file."""
    try:
        address, file_path = KeyManager.create_view_key_file(Path(path), overwrite)
    except FileExistsError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo("View key created. Keep this file secret!")
    click.echo(f"View key file saved to: {file_path}")
    click.echo(f"Verifier address: {address}")


@identity_group.command("show")
@click.option(
    "--view-key-path",
    type=click.Path(dir_okay=False),
    default=DEFAULT_VIEW_KEY_PATH,
    envvar="CEREMONY_VIEW_KEY_PATH",
    help="Path to the view key file.",
)
def identity_show(view_key_path):
    """Shows the verifier address for a view key."""
    try:
        view_key = KeyManager.load_view_key(Path(view_key_path))
    except InvalidKey as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(address_of(view_key))
