import httpx
import pytest
import pytest_asyncio

from ceremony_verifier.lib.api_client import CoordinatorClient
from tests.helpers.coordinator import MockCoordinator, create_app
from tests.helpers.util import API_URL, VIEW_KEY_HEX


@pytest.fixture
def view_key_hex():
    return VIEW_KEY_HEX


@pytest.fixture
def api_url():
    return API_URL


@pytest.fixture
def lock_body():
    return {
        "chunk_id": "3",
        "contribution_id": 1,
        "locked": True,
        "participant_id": "verifier-1",
        "challenge_locator": "./chunks/3/challenge",
        "response_locator": "./chunks/3/response",
        "next_challenge_locator": "./chunks/3/next_challenge",
    }


@pytest.fixture
def coordinator(lock_body):
    """A mock coordinator holding one lockable chunk and its files."""
    return MockCoordinator(
        lock_body=lock_body,
        files={
            "chunks/3/challenge": b"challenge-bytes",
            "chunks/3/response": b"response-bytes",
        },
    )


@pytest_asyncio.fixture
async def coordinator_client(coordinator, view_key_hex):
    """A CoordinatorClient talking to the mock coordinator in-process."""
    transport = httpx.ASGITransport(app=create_app(coordinator))
    async with httpx.AsyncClient(transport=transport) as http_client:
        async with CoordinatorClient(API_URL, view_key_hex, http_client) as client:
            yield client
