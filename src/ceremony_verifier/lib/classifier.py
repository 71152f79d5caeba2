"""
Maps the outcome of a coordinator call to a payload or a typed error.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

import httpx
from pydantic import ValidationError

from ceremony_verifier.lib.errors import (
    FailedRemoteOperation,
    FailedRequest,
    LockResponseDecodeError,
)
from ceremony_verifier.models import LockResponse

Outcome = Union[httpx.Response, httpx.RequestError]


def decode_lock_response(response: httpx.Response) -> LockResponse:
    """
    Decodes a lock response body.

    The coordinator may wrap the lock in a {"status": ..., "result": {...}}
    envelope; the envelope is unwrapped before validation.

    Raises:
        LockResponseDecodeError: If the body is not JSON or does not match
            the LockResponse schema.
    """
    try:
        body = json.loads(response.content)
    except ValueError as e:
        raise LockResponseDecodeError(f"invalid JSON: {e}") from e

    if isinstance(body, dict) and set(body) <= {"status", "result"} and "result" in body:
        body = body["result"]

    try:
        return LockResponse.model_validate(body)
    except ValidationError as e:
        raise LockResponseDecodeError(str(e)) from e


def decode_bytes(response: httpx.Response) -> bytes:
    return response.content


def decode_text(response: httpx.Response) -> str:
    return response.text


@dataclass(frozen=True)
class SignedCall:
    """
    Description of one coordinator operation.

    The five coordinator operations differ only in the fields below; the
    signing, sending and classification pipeline is shared.
    """

    name: str
    method: str
    path_template: str
    decode: Callable[[httpx.Response], Any]
    error: Callable[[Optional[str], int], FailedRemoteOperation]

    def path(self, locator: Optional[str] = None) -> str:
        if locator is None:
            return self.path_template
        return self.path_template.format(locator=locator)


def classify(
    call: SignedCall,
    outcome: Outcome,
    *,
    locator: Optional[str],
    path: str,
    base_url: str,
) -> Any:
    """
    Classifies the outcome of a signed call.

    Args:
        call: The operation that produced the outcome
        outcome: The HTTP response, or the transport error raised instead
        locator: The locator exactly as the caller passed it
        path: The path that was sent on the wire
        base_url: The coordinator API URL

    Returns:
        The decoded success payload

    Raises:
        FailedRequest: On any transport failure
        FailedRemoteOperation: The call's error on a non-success status
        LockResponseDecodeError: On an undecodable lock body
    """
    if isinstance(outcome, httpx.RequestError):
        raise FailedRequest(path, base_url) from outcome

    if not outcome.is_success:
        raise call.error(locator, outcome.status_code)

    return call.decode(outcome)
