import ecdsa
import hashlib
from dataclasses import dataclass
from typing import Union

from ceremony_verifier.config import AUTH_SCHEME
from ceremony_verifier.lib.errors import InvalidKey

SUPPORTED_METHODS = ("GET", "POST")

ViewKeyLike = Union[str, bytes, ecdsa.SigningKey]


@dataclass(frozen=True)
class Signature:
    """
    A request signature bound to one HTTP method and one canonical path.

    The string form is the value of the Authorization header:
    ``"<scheme> <address_hex>:<signature_hex>"``.
    """

    address: str
    signature: str
    method: str
    path: str

    def __str__(self) -> str:
        return f"{AUTH_SCHEME} {self.address}:{self.signature}"


def parse_view_key(view_key: ViewKeyLike) -> ecdsa.SigningKey:
    """
    Parses a view key from its stored representation.

    Args:
        view_key: Hex string, raw 32 bytes, or an already parsed SigningKey.

    Returns:
        The SECP256k1 signing key.

    Raises:
        InvalidKey: If the key material is malformed. The message never
            includes the key itself.
    """
    if isinstance(view_key, ecdsa.SigningKey):
        return view_key
    try:
        if isinstance(view_key, str):
            view_key = bytes.fromhex(view_key.strip())
        return ecdsa.SigningKey.from_string(view_key, curve=ecdsa.SECP256k1)
    except (ValueError, TypeError, ecdsa.MalformedPointError) as e:
        raise InvalidKey(type(e).__name__) from None


def address_of(view_key: ViewKeyLike) -> str:
    """Hex-encoded uncompressed public key for the given view key."""
    vk = parse_view_key(view_key).get_verifying_key()
    assert vk is not None, "Verifying key should not be None"
    return vk.to_string("uncompressed").hex()


def signing_message(method: str, canonical_path: str) -> bytes:
    method = method.upper()
    if method not in SUPPORTED_METHODS:
        raise ValueError(f"Unsupported method for signing: {method}")
    return f"{method.lower()} {canonical_path}".encode("utf-8")


def sign(view_key: ViewKeyLike, method: str, canonical_path: str) -> Signature:
    """
    Signs a request with the verifier's view key.

    The path must already be canonical (locators cleaned up and the API
    namespace prepended). Signing uses RFC 6979 deterministic ECDSA, so equal
    inputs always produce equal signatures.

    Args:
        view_key: The verifier's secret view key.
        method: GET or POST.
        canonical_path: The path the coordinator will verify against.

    Returns:
        The Signature for this method and path.
    """
    message = signing_message(method, canonical_path)
    sk = parse_view_key(view_key)
    signature_hex = sk.sign_deterministic(message, hashfunc=hashlib.sha256).hex()
    return Signature(
        address=address_of(sk),
        signature=signature_hex,
        method=method.upper(),
        path=canonical_path,
    )


def verify_signature(public_key_hex: str, signature_hex: str, message: bytes) -> bool:
    """
    Verifies an ECDSA signature.

    Args:
        public_key_hex: The public key in hex format.
        signature_hex: The signature in hex format.
        message: The message that was signed.

    Returns:
        True if the signature is valid, False otherwise.
    """
    try:
        vk = ecdsa.VerifyingKey.from_string(
            bytes.fromhex(public_key_hex), curve=ecdsa.SECP256k1
        )
        signature = bytes.fromhex(signature_hex)
        # We expect the message to be hashed with SHA256 before signing
        return vk.verify(signature, message, hashfunc=hashlib.sha256)
    except (
        ecdsa.keys.MalformedPointError,
        ValueError,
        ecdsa.BadSignatureError,
    ):
        return False


def verify_authorization(header: str, method: str, canonical_path: str) -> bool:
    """
    Checks an Authorization header the way the coordinator does.

    Returns:
        True if the header carries a valid signature over method and path.
    """
    scheme, _, credentials = header.partition(" ")
    if scheme != AUTH_SCHEME or ":" not in credentials:
        return False
    address, _, signature_hex = credentials.partition(":")
    try:
        message = signing_message(method, canonical_path)
    except ValueError:
        return False
    return verify_signature(address, signature_hex, message)
