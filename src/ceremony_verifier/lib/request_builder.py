"""
Request construction for signed coordinator calls.

Nothing in this module performs I/O: it canonicalizes locators, derives the
signed path from the sent path, and assembles httpx.Request objects.
"""

from typing import Optional

import httpx

from ceremony_verifier.config import API_NAMESPACE
from ceremony_verifier.lib.auth import Signature
from ceremony_verifier.lib.errors import InvalidLocator

OCTET_STREAM = "application/octet-stream"

# Characters that would end the URL path and become a query or fragment.
URL_DELIMITERS = ("?", "#")


def canonicalize_locator(locator: str) -> str:
    """
    Removes every "./" marker from a locator.

    Removal is repeated until none remain, so canonicalizing an already
    canonical locator returns it unchanged.

    Raises:
        InvalidLocator: If the canonical locator still climbs out of its
            directory through a ".." segment, or contains a query or fragment
            delimiter that would cut the sent path short of the signed one.
    """
    if any(delimiter in locator for delimiter in URL_DELIMITERS):
        raise InvalidLocator(locator, "query or fragment delimiter")
    canonical = locator
    while "./" in canonical:
        canonical = canonical.replace("./", "")
    if ".." in canonical.split("/"):
        raise InvalidLocator(locator)
    return canonical


def signature_path(path: str) -> str:
    """The path the coordinator verifies signatures against."""
    return f"{API_NAMESPACE}{path}"


def build_request(
    base_url: str,
    method: str,
    path: str,
    signature: Signature,
    body: Optional[bytes] = None,
) -> httpx.Request:
    """
    Assembles an authenticated request.

    Args:
        base_url: Coordinator API URL, e.g. http://host:9000/api
        method: HTTP method the signature was made for
        path: Path appended to base_url on the wire
        signature: Signature over the namespaced form of path
        body: Optional binary body, sent as application/octet-stream

    Returns:
        An unsent httpx.Request
    """
    headers = {"Authorization": str(signature)}
    if body is not None:
        headers["Content-Type"] = OCTET_STREAM
    return httpx.Request(
        method.upper(),
        f"{base_url.rstrip('/')}{path}",
        headers=headers,
        content=body,
    )
