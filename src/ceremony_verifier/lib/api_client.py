"""
Coordinator API Client - Handles all signed communication with the ceremony
coordinator.
"""

from typing import Any, Optional

import httpx

from ceremony_verifier.config import HTTP_TIMEOUT_SECONDS
from ceremony_verifier.lib.auth import ViewKeyLike, address_of, parse_view_key, sign
from ceremony_verifier.lib.classifier import (
    SignedCall,
    classify,
    decode_bytes,
    decode_lock_response,
    decode_text,
)
from ceremony_verifier.lib.errors import (
    FailedChallengeDownload,
    FailedChallengeUpload,
    FailedLock,
    FailedResponseDownload,
    FailedVerification,
    VerifierError,
)
from ceremony_verifier.lib.log import get_logger, log
from ceremony_verifier.lib.request_builder import (
    build_request,
    canonicalize_locator,
    signature_path,
)
from ceremony_verifier.models import LockResponse

logger = get_logger("api_client")


LOCK_CHUNK = SignedCall(
    name="lock a chunk",
    method="POST",
    path_template="/coordinator/verifier/lock",
    decode=decode_lock_response,
    error=lambda _locator, status_code: FailedLock(status_code),
)
VERIFY_CONTRIBUTION = SignedCall(
    name="verify a contribution",
    method="POST",
    path_template="/coordinator/verify/{locator}",
    decode=decode_text,
    error=FailedVerification,
)
DOWNLOAD_CHALLENGE = SignedCall(
    name="download a challenge file",
    method="GET",
    path_template="/coordinator/locator/{locator}",
    decode=decode_bytes,
    error=FailedChallengeDownload,
)
DOWNLOAD_RESPONSE = SignedCall(
    name="download a response file",
    method="GET",
    path_template="/coordinator/locator/{locator}",
    decode=decode_bytes,
    error=FailedResponseDownload,
)
UPLOAD_NEXT_CHALLENGE = SignedCall(
    name="upload a new challenge file",
    method="POST",
    path_template="/coordinator/verification/{locator}",
    decode=decode_text,
    error=FailedChallengeUpload,
)


class CoordinatorClient:
    """Signed client for the coordinator's verifier endpoints"""

    def __init__(
        self,
        api_url: str,
        view_key: ViewKeyLike,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the coordinator client.

        The view key is parsed once here, so a malformed key fails at
        construction with InvalidKey rather than on the first request.

        Args:
            api_url: Coordinator API URL, including its /api prefix
            view_key: The verifier's secret view key
            http_client: Optional client to send requests with. When omitted
                the client creates and owns one.
        """
        self.api_url = api_url.rstrip("/")
        self._view_key = parse_view_key(view_key)
        self.address = address_of(self._view_key)
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)

    def __repr__(self) -> str:
        return f"CoordinatorClient(api_url={self.api_url!r}, address={self.address!r})"

    async def __aenter__(self) -> "CoordinatorClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _signed_call(
        self,
        call: SignedCall,
        locator: Optional[str] = None,
        body: Optional[bytes] = None,
    ) -> Any:
        canonical = canonicalize_locator(locator) if locator is not None else None
        path = call.path(canonical)

        signature = sign(self._view_key, call.method, signature_path(path))
        request = build_request(self.api_url, call.method, path, signature, body)

        try:
            outcome = await self._http.send(request)
        except httpx.RequestError as e:
            log(
                logger,
                "error",
                f"Request ({path}) to {call.name} failed.",
                error=type(e).__name__,
            )
            outcome = e

        try:
            return classify(
                call, outcome, locator=locator, path=path, base_url=self.api_url
            )
        except VerifierError as e:
            if isinstance(outcome, httpx.Response):
                log(logger, "error", f"Failed to {call.name}", path=path, error=e)
            raise

    async def lock_chunk(self) -> LockResponse:
        """
        Attempts to acquire the lock on a chunk.

        Returns:
            The coordinator's LockResponse

        Raises:
            FailedLock: If the coordinator refused the lock
            LockResponseDecodeError: If the lock body could not be decoded
            FailedRequest: If the coordinator could not be reached
        """
        log(logger, "info", "Verifier attempting to lock a chunk")
        lock_response = await self._signed_call(LOCK_CHUNK)
        log(logger, "debug", f"Decoded verifier lock response: {lock_response!r}")
        return lock_response

    async def verify_contribution(self, verified_locator: str) -> str:
        """
        Asks the coordinator to run verification for `verified_locator`.

        This assumes a valid challenge file has already been uploaded to the
        coordinator at the given locator.

        Returns:
            The coordinator's acknowledgement text
        """
        log(
            logger,
            "info",
            f"Verifier running verification of a response file at {verified_locator}",
        )
        return await self._signed_call(VERIFY_CONTRIBUTION, verified_locator)

    async def download_challenge_file(self, challenge_locator: str) -> bytes:
        """Downloads the full challenge file at `challenge_locator`."""
        log(logger, "info", f"Verifier downloading a challenge file at {challenge_locator}")
        return await self._signed_call(DOWNLOAD_CHALLENGE, challenge_locator)

    async def download_response_file(self, response_locator: str) -> bytes:
        """Downloads the full unverified response file at `response_locator`."""
        log(logger, "info", f"Verifier downloading a response file at {response_locator}")
        return await self._signed_call(DOWNLOAD_RESPONSE, response_locator)

    async def upload_next_challenge_locator_file(
        self, next_challenge_locator: str, next_challenge_file_bytes: bytes
    ) -> str:
        """
        Uploads the next challenge file to the coordinator.

        Args:
            next_challenge_locator: Locator to upload to
            next_challenge_file_bytes: The verified next challenge

        Returns:
            The coordinator's acknowledgement text
        """
        log(
            logger,
            "info",
            f"Verifier uploading a response with size {len(next_challenge_file_bytes)} "
            f"to {next_challenge_locator}",
        )
        return await self._signed_call(
            UPLOAD_NEXT_CHALLENGE, next_challenge_locator, next_challenge_file_bytes
        )
