"""
Chunk lifecycle: lock, download, verify, upload and confirm one chunk.

ChunkLifecycleDriver runs exactly one iteration per call and never retries.
run_verifier() is the outer supervisor that calls it repeatedly and decides
which failures are worth another attempt.
"""

import asyncio
import enum
import inspect
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Tuple

from ceremony_verifier.config import LOCK_RETRY_INTERVAL_SECONDS
from ceremony_verifier.lib.api_client import CoordinatorClient
from ceremony_verifier.lib.errors import (
    LockNotHeld,
    VerificationRejected,
    VerifierError,
)
from ceremony_verifier.lib.log import get_logger, log

logger = get_logger("driver")


class ChunkState(enum.Enum):
    IDLE = "idle"
    LOCKING = "locking"
    DOWNLOADING = "downloading"
    VERIFYING = "verifying"
    UPLOADING = "uploading"
    CONFIRMING = "confirming"
    FAILED = "failed"


class ContributionVerifier(Protocol):
    """
    The local verification routine applied to a downloaded chunk.

    Either method may be a coroutine function. Implementations that cannot
    complete their check should raise VerificationError.
    """

    def verify(self, challenge: bytes, response: bytes) -> bool: ...

    def next_challenge(self, challenge: bytes, response: bytes) -> bytes: ...


@dataclass(frozen=True)
class ChunkReport:
    """Summary of one completed chunk iteration."""

    chunk_id: str
    challenge_locator: str
    response_locator: str
    next_challenge_locator: str
    challenge_size: int
    response_size: int
    next_challenge_size: int
    upload_ack: str
    verification_ack: str


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class ChunkLifecycleDriver:
    """Drives one verifier through the chunk lifecycle."""

    def __init__(self, client: CoordinatorClient, verifier: ContributionVerifier):
        self.client = client
        self.verifier = verifier
        self.state = ChunkState.IDLE
        self.history: List[ChunkState] = [ChunkState.IDLE]

    def _transition(self, state: ChunkState) -> None:
        log(
            logger,
            "debug",
            "Chunk state transition",
            old=self.state.value,
            new=state.value,
        )
        self.state = state
        self.history.append(state)

    async def _download(
        self, challenge_locator: str, response_locator: str
    ) -> Tuple[bytes, bytes]:
        # Both downloads are allowed to finish before any failure is raised.
        challenge, response = await asyncio.gather(
            self.client.download_challenge_file(challenge_locator),
            self.client.download_response_file(response_locator),
            return_exceptions=True,
        )
        for result in (challenge, response):
            if isinstance(result, BaseException):
                raise result
        return challenge, response

    async def run_once(self) -> ChunkReport:
        """
        Runs one full iteration for a single chunk.

        Returns:
            A ChunkReport once the coordinator has acknowledged verification.

        Raises:
            VerifierError: The failure that moved the driver to FAILED. The
                driver does not retry; see run_verifier().
        """
        self.state = ChunkState.IDLE
        self.history = [ChunkState.IDLE]
        try:
            self._transition(ChunkState.LOCKING)
            lock = await self.client.lock_chunk()
            if not lock.locked:
                raise LockNotHeld(lock.chunk_id)
            log(logger, "info", "Verifier locked a chunk", chunk_id=lock.chunk_id)

            self._transition(ChunkState.DOWNLOADING)
            challenge, response = await self._download(
                lock.challenge_locator, lock.response_locator
            )

            self._transition(ChunkState.VERIFYING)
            if not await _resolve(self.verifier.verify(challenge, response)):
                raise VerificationRejected(lock.chunk_id)
            next_challenge = await _resolve(
                self.verifier.next_challenge(challenge, response)
            )

            self._transition(ChunkState.UPLOADING)
            upload_ack = await self.client.upload_next_challenge_locator_file(
                lock.next_challenge_locator, next_challenge
            )

            self._transition(ChunkState.CONFIRMING)
            verification_ack = await self.client.verify_contribution(
                lock.next_challenge_locator
            )
        except (Exception, asyncio.CancelledError) as e:
            log(
                logger,
                "error",
                "Chunk iteration failed",
                state=self.state.value,
                error=e,
            )
            self._transition(ChunkState.FAILED)
            raise

        self._transition(ChunkState.IDLE)
        log(logger, "info", "Verifier completed a chunk", chunk_id=lock.chunk_id)
        return ChunkReport(
            chunk_id=lock.chunk_id,
            challenge_locator=lock.challenge_locator,
            response_locator=lock.response_locator,
            next_challenge_locator=lock.next_challenge_locator,
            challenge_size=len(challenge),
            response_size=len(response),
            next_challenge_size=len(next_challenge),
            upload_ack=upload_ack,
            verification_ack=verification_ack,
        )


async def run_verifier(
    driver: ChunkLifecycleDriver,
    iterations: Optional[int] = None,
    retry_interval: float = LOCK_RETRY_INTERVAL_SECONDS,
) -> List[ChunkReport]:
    """
    Repeatedly drives chunk iterations.

    Retryable failures (unreachable coordinator, lock contention) wait
    `retry_interval` seconds and count as an attempt. Any other failure stops
    the loop and propagates.

    Args:
        driver: The driver to run
        iterations: Number of attempts to make, or None to run forever
        retry_interval: Seconds to sleep after a retryable failure

    Returns:
        Reports for the iterations that completed
    """
    reports: List[ChunkReport] = []
    attempt = 0
    while iterations is None or attempt < iterations:
        attempt += 1
        try:
            reports.append(await driver.run_once())
        except VerifierError as e:
            if not e.retryable:
                raise
            log(
                logger,
                "warning",
                "Retryable failure, waiting before the next attempt",
                attempt=attempt,
                retry_in=retry_interval,
                error=e,
            )
            if iterations is None or attempt < iterations:
                await asyncio.sleep(retry_interval)
    return reports
