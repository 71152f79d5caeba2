"""
View key management for the verifier.

The view key is a SECP256k1 secret stored hex-encoded in a single file. It is
loaded once at startup and never leaves the process; only the derived
address and request signatures are sent to the coordinator.
"""

import os
from pathlib import Path
from typing import Tuple

import ecdsa

from ceremony_verifier.lib.auth import address_of, parse_view_key
from ceremony_verifier.lib.errors import InvalidKey
from ceremony_verifier.lib.log import get_logger, log

logger = get_logger("key_manager")


class KeyManager:
    """Generates, stores and loads the verifier's view key."""

    @staticmethod
    def generate_view_key() -> Tuple[ecdsa.SigningKey, str]:
        """
        Generate a new view key.

        Returns:
            tuple: (SigningKey object, hex-encoded address)
        """
        sk = ecdsa.SigningKey.generate(curve=ecdsa.SECP256k1)
        return sk, address_of(sk)

    @staticmethod
    def save_view_key(
        view_key: ecdsa.SigningKey, file_path: Path, overwrite: bool = False
    ) -> None:
        """Save the view key to file, readable by the owner only."""
        file_path = Path(file_path)
        if file_path.exists() and not overwrite:
            raise FileExistsError(f"View key file already exists: {file_path}")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        # Created owner-only; an existing file is narrowed before it is written.
        fd = os.open(file_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(view_key.to_string().hex())
        log(
            logger,
            "info",
            "Saved view key",
            path=file_path,
            address=address_of(view_key),
        )

    @staticmethod
    def load_view_key(file_path: Path) -> ecdsa.SigningKey:
        """
        Load the view key from file.

        Raises:
            InvalidKey: If the file is missing or its content is not a valid key
        """
        try:
            with open(file_path, "r") as f:
                sk_hex = f.read().strip()
        except FileNotFoundError:
            raise InvalidKey(f"view key file not found: {file_path}")
        return parse_view_key(sk_hex)

    @classmethod
    def create_view_key_file(
        cls, file_path: Path, overwrite: bool = False
    ) -> Tuple[str, Path]:
        """
        Create and store a fresh view key.

        Returns:
            tuple: (address, path of the key file)
        """
        sk, address = cls.generate_view_key()
        cls.save_view_key(sk, Path(file_path), overwrite=overwrite)
        return address, Path(file_path)
