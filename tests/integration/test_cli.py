import json
import sys

import httpx
import pytest
from click.testing import CliRunner

from ceremony_verifier.cli import verifier as verifier_cli
from ceremony_verifier.cli.main import cli
from ceremony_verifier.lib.api_client import CoordinatorClient
from tests.helpers.coordinator import create_app
from tests.helpers.util import API_URL, VIEW_KEY_HEX

pytestmark = pytest.mark.integration


@pytest.fixture
def view_key_file(tmp_path):
    key_file = tmp_path / "view_key.hex"
    key_file.write_text(VIEW_KEY_HEX)
    return key_file


@pytest.fixture
def patched_client(monkeypatch, coordinator):
    """Routes every CoordinatorClient the CLI creates to the mock coordinator."""

    def factory(api_url, view_key):
        transport = httpx.ASGITransport(app=create_app(coordinator))
        http_client = httpx.AsyncClient(transport=transport)
        client = CoordinatorClient(api_url, view_key, http_client)
        client._owns_http = True
        return client

    monkeypatch.setattr(verifier_cli, "CoordinatorClient", factory)
    return coordinator


def _invoke(*args):
    runner = CliRunner()
    return runner.invoke(cli, ["--log-level", "CRITICAL", *args])


class TestIdentityCommands:
    def test_identity_new_and_show(self, tmp_path):
        key_file = tmp_path / "id" / "view_key.hex"

        result = _invoke("identity", "new", "--path", str(key_file))
        assert result.exit_code == 0, result.output
        assert "Verifier address:" in result.output
        address = result.output.strip().splitlines()[-1].split(": ")[1]

        result = _invoke("identity", "show", "--view-key-path", str(key_file))
        assert result.exit_code == 0
        assert result.output.strip() == address

    def test_identity_new_refuses_overwrite(self, view_key_file):
        result = _invoke("identity", "new", "--path", str(view_key_file))
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert view_key_file.read_text() == VIEW_KEY_HEX

    def test_identity_show_invalid_key(self, tmp_path):
        key_file = tmp_path / "bad.hex"
        key_file.write_text("not a key")
        result = _invoke("identity", "show", "--view-key-path", str(key_file))
        assert result.exit_code == 1
        assert "Invalid view key" in result.output
        assert "not a key" not in result.output


class TestVerifierCommands:
    def test_lock(self, patched_client, view_key_file, lock_body):
        result = _invoke(
            "lock", "--api-url", API_URL, "--view-key-path", str(view_key_file)
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["chunk_id"] == lock_body["chunk_id"]

    def test_lock_contention_exits_nonzero(self, patched_client, view_key_file):
        patched_client.lock_body = None
        result = _invoke(
            "lock", "--api-url", API_URL, "--view-key-path", str(view_key_file)
        )
        assert result.exit_code == 1
        assert "Coordinator rejected the chunk lock" in result.output

    def test_download(self, patched_client, view_key_file, tmp_path):
        output = tmp_path / "challenge.bin"
        result = _invoke(
            "download",
            "--api-url",
            API_URL,
            "--view-key-path",
            str(view_key_file),
            "--locator",
            "./chunks/3/challenge",
            "-o",
            str(output),
        )
        assert result.exit_code == 0, result.output
        assert output.read_bytes() == b"challenge-bytes"

    def test_run(self, patched_client, view_key_file):
        result = _invoke(
            "run",
            "--api-url",
            API_URL,
            "--view-key-path",
            str(view_key_file),
            "--verifier",
            "tests.helpers.verifiers:EchoVerifier",
            "--iterations",
            "1",
        )
        assert result.exit_code == 0, result.output
        assert "Verified chunk 3" in result.output
        assert patched_client.verified == ["chunks/3/next_challenge"]

    def test_run_rejected_contribution(self, patched_client, view_key_file):
        result = _invoke(
            "run",
            "--api-url",
            API_URL,
            "--view-key-path",
            str(view_key_file),
            "--verifier",
            "tests.helpers.verifiers:RejectingVerifier",
            "--iterations",
            "1",
        )
        assert result.exit_code == 1
        assert "failed verification" in result.output
        assert patched_client.uploads == {}

    def test_run_bad_verifier_reference(self, view_key_file):
        result = _invoke(
            "run",
            "--view-key-path",
            str(view_key_file),
            "--verifier",
            "no_colon_here",
        )
        assert result.exit_code == 2
        assert "module:attribute" in result.output

    def test_missing_view_key(self, tmp_path):
        result = _invoke(
            "lock", "--api-url", API_URL, "--view-key-path", str(tmp_path / "nope")
        )
        assert result.exit_code == 1
        assert "not found" in result.output


def test_load_verifier_instance_and_class():
    from tests.helpers.verifiers import EchoVerifier

    assert isinstance(
        verifier_cli.load_verifier("tests.helpers.verifiers:echo_verifier"), EchoVerifier
    )
    assert isinstance(
        verifier_cli.load_verifier("tests.helpers.verifiers:EchoVerifier"), EchoVerifier
    )


def test_load_verifier_from_working_directory(tmp_path, monkeypatch):
    (tmp_path / "local_chunk_verifier.py").write_text(
        "class LocalVerifier:\n"
        "    def verify(self, challenge, response):\n"
        "        return True\n"
        "\n"
        "    def next_challenge(self, challenge, response):\n"
        "        return challenge\n"
    )
    monkeypatch.chdir(tmp_path)
    # As under the console script: the working directory is not importable.
    monkeypatch.setattr(
        sys, "path", [p for p in sys.path if p not in ("", str(tmp_path))]
    )
    monkeypatch.delitem(sys.modules, "local_chunk_verifier", raising=False)

    verifier = verifier_cli.load_verifier("local_chunk_verifier:LocalVerifier")

    assert type(verifier).__name__ == "LocalVerifier"
    assert verifier.verify(b"c", b"r")
