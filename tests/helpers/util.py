import httpx

from ceremony_verifier.lib.api_client import CoordinatorClient

API_URL = "http://coordinator.test/api"

# A fixed view key so signatures are reproducible across runs.
VIEW_KEY_HEX = "0f" * 32


def mock_client(handler, view_key_hex: str = VIEW_KEY_HEX) -> CoordinatorClient:
    """A CoordinatorClient whose requests are answered by `handler`."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CoordinatorClient(API_URL, view_key_hex, http_client)


def refuse_connection(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)
