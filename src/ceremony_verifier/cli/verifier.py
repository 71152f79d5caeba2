import asyncio
import click
import importlib
import os
import sys
from pathlib import Path

from ceremony_verifier.config import (
    DEFAULT_API_URL,
    DEFAULT_VIEW_KEY_PATH,
    LOCK_RETRY_INTERVAL_SECONDS,
)
from ceremony_verifier.lib.api_client import CoordinatorClient
from ceremony_verifier.lib.driver import ChunkLifecycleDriver, run_verifier
from ceremony_verifier.lib.errors import VerifierError
from ceremony_verifier.lib.key_manager import KeyManager

api_url_option = click.option(
    "--api-url",
    envvar="CEREMONY_API_URL",
    default=DEFAULT_API_URL,
    show_default=True,
    help="Coordinator API URL, including its /api prefix.",
)
view_key_option = click.option(
    "--view-key-path",
    type=click.Path(dir_okay=False),
    envvar="CEREMONY_VIEW_KEY_PATH",
    default=DEFAULT_VIEW_KEY_PATH,
    help="Path to the view key file.",
)


def load_verifier(spec: str):
    """
    Imports a contribution verifier from a "module:attribute" reference.

    A class or factory is called with no arguments; anything else is used as
    the verifier object itself. Modules in the current working directory are
    importable, as they are under "python -m".
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(
            f"expected 'module:attribute', got {spec!r}", param_hint="--verifier"
        )
    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    try:
        target = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot load {spec!r}: {e}", param_hint="--verifier")
    if isinstance(target, type) or (callable(target) and not hasattr(target, "verify")):
        target = target()
    return target


def _run(coro):
    try:
        return asyncio.run(coro)
    except VerifierError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _load_view_key(view_key_path):
    try:
        return KeyManager.load_view_key(Path(view_key_path))
    except VerifierError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.command("lock")
@api_url_option
@view_key_option
def lock(api_url, view_key_path):
    """Attempts to lock a chunk and prints the lock response."""
    view_key = _load_view_key(view_key_path)

    async def _lock():
        async with CoordinatorClient(api_url, view_key) as client:
            return await client.lock_chunk()

    lock_response = _run(_lock())
    click.echo(lock_response.model_dump_json(indent=2))


@click.command("download")
@api_url_option
@view_key_option
@click.option("--locator", required=True, help="Locator of the file to download.")
@click.option(
    "--kind",
    type=click.Choice(["challenge", "response"]),
    default="challenge",
    show_default=True,
    help="Which file the locator refers to.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    required=True,
    help="Where to write the downloaded file.",
)
def download(api_url, view_key_path, locator, kind, output):
    """Downloads a challenge or response file."""
    view_key = _load_view_key(view_key_path)

    async def _download():
        async with CoordinatorClient(api_url, view_key) as client:
            if kind == "challenge":
                return await client.download_challenge_file(locator)
            return await client.download_response_file(locator)

    data = _run(_download())
    with open(output, "wb") as f:
        f.write(data)
    click.echo(f"Downloaded {len(data)} bytes from {locator} to {output}")


@click.command("run")
@api_url_option
@view_key_option
@click.option(
    "--verifier",
    "verifier_spec",
    required=True,
    help="Contribution verifier to use, as 'module:attribute'.",
)
@click.option(
    "--iterations",
    type=click.IntRange(min=1),
    default=None,
    help="Number of lock attempts to make. Runs forever when omitted.",
)
@click.option(
    "--retry-interval",
    type=float,
    default=LOCK_RETRY_INTERVAL_SECONDS,
    show_default=True,
    help="Seconds to wait after lock contention or a connection failure.",
)
def run(api_url, view_key_path, verifier_spec, iterations, retry_interval):
    """Runs the verifier against the coordinator."""
    verifier = load_verifier(verifier_spec)
    view_key = _load_view_key(view_key_path)

    async def _run_verifier():
        async with CoordinatorClient(api_url, view_key) as client:
            click.echo(f"Verifier {client.address} connected to {api_url}")
            driver = ChunkLifecycleDriver(client, verifier)
            return await run_verifier(driver, iterations, retry_interval)

    reports = _run(_run_verifier())
    for report in reports:
        click.echo(f"✓ Verified chunk {report.chunk_id} -> {report.next_challenge_locator}")
    click.echo(f"Completed {len(reports)} chunk(s)")
