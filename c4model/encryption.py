# c4model/encryption.py
"""Client-side workspace encryption.

An encrypted workspace is stored as an envelope that keeps the id, name and
description readable and carries the rest as `ciphertext`:

    {"id": 42, "name": "...", "description": "...",
     "ciphertext": "<base64>",
     "encryptionStrategy": {"type": "aes", "keySize": 128, "iterationCount": 1000,
                            "salt": "<hex>", "iv": "<hex>", "location": "Client"}}

The passphrase is never written; it has to be supplied again on decryption.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from typing import Any, Optional

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .serialize import dumps, loads
from .workspace import Workspace

logger = logging.getLogger(__name__)

AES_KEY_SIZES = (128, 192, 256)
STRATEGY_TYPE = "aes"
STRATEGY_LOCATION = "Client"


class EncryptionError(ValueError):
    """Ciphertext could not be produced or recovered with the given parameters."""


def _random_hex(size: int = 16) -> str:
    return os.urandom(size).hex().upper()


def _from_hex(name: str, value: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError as e:
        raise EncryptionError(f"The {name} must be a hex string: {e}") from e


class AesEncryptionStrategy:
    """AES-CBC with PKCS7 padding, keyed by PBKDF2-HMAC-SHA1 over the passphrase.

    `salt` and `iv` are hex strings; fresh random 16-byte values are generated
    when they are not given.
    """

    def __init__(
        self,
        key_size: int = 128,
        iteration_count: int = 1000,
        passphrase: Optional[str] = None,
        *,
        salt: Optional[str] = None,
        iv: Optional[str] = None,
    ) -> None:
        if key_size not in AES_KEY_SIZES:
            raise ValueError(f"Key size must be one of {AES_KEY_SIZES}, got {key_size}")
        if iteration_count <= 0:
            raise ValueError("The iteration count must be positive")
        self._key_size = key_size
        self._iteration_count = iteration_count
        self._salt = salt or _random_hex()
        self._iv = iv or _random_hex()
        self.passphrase = passphrase

    @property
    def key_size(self) -> int:
        return self._key_size

    @property
    def iteration_count(self) -> int:
        return self._iteration_count

    @property
    def salt(self) -> str:
        return self._salt

    @property
    def iv(self) -> str:
        return self._iv

    def _cipher(self) -> Cipher:
        if not self.passphrase:
            raise EncryptionError("A passphrase is required")
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA1(),
            length=self._key_size // 8,
            salt=_from_hex("salt", self._salt),
            iterations=self._iteration_count,
        )
        key = kdf.derive(self.passphrase.encode("utf-8"))
        try:
            return Cipher(algorithms.AES(key), modes.CBC(_from_hex("iv", self._iv)))
        except ValueError as e:
            raise EncryptionError(f"Invalid cipher parameters: {e}") from e

    def encrypt(self, plaintext: str) -> str:
        """Return the base64 ciphertext of `plaintext`."""
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = self._cipher().encryptor()
        return base64.b64encode(encryptor.update(padded) + encryptor.finalize()).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Recover the plaintext; raises EncryptionError when the parameters do not match."""
        decryptor = self._cipher().decryptor()
        try:
            raw = base64.b64decode(ciphertext, validate=True)
            padded = decryptor.update(raw) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
        except (ValueError, binascii.Error) as e:
            raise EncryptionError(f"The ciphertext could not be decrypted: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": STRATEGY_TYPE,
            "keySize": self._key_size,
            "iterationCount": self._iteration_count,
            "salt": self._salt,
            "iv": self._iv,
            "location": STRATEGY_LOCATION,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], passphrase: Optional[str] = None) -> AesEncryptionStrategy:
        strategy_type = data.get("type", STRATEGY_TYPE)
        if strategy_type != STRATEGY_TYPE:
            raise EncryptionError(f"Unsupported encryption strategy {strategy_type!r}")
        return cls(
            int(data["keySize"]),
            int(data["iterationCount"]),
            passphrase,
            salt=data["salt"],
            iv=data["iv"],
        )


def is_encrypted(data: dict[str, Any]) -> bool:
    return "ciphertext" in data


def encrypt_workspace(workspace: Workspace, strategy: AesEncryptionStrategy) -> dict[str, Any]:
    """Build the encrypted envelope for `workspace`."""
    envelope: dict[str, Any] = {"id": workspace.id, "name": workspace.name}
    if workspace.description:
        envelope["description"] = workspace.description
    envelope["ciphertext"] = strategy.encrypt(dumps(workspace))
    envelope["encryptionStrategy"] = strategy.to_dict()
    return envelope


def dumps_encrypted(workspace: Workspace, strategy: AesEncryptionStrategy) -> str:
    return json.dumps(encrypt_workspace(workspace, strategy), separators=(",", ":"), ensure_ascii=False)


def decrypt_workspace(data: dict[str, Any], passphrase: Optional[str]) -> Workspace:
    """Rebuild a workspace from an envelope written by `encrypt_workspace`."""
    if not is_encrypted(data):
        raise EncryptionError("The workspace is not encrypted")
    strategy = AesEncryptionStrategy.from_dict(data.get("encryptionStrategy") or {}, passphrase)
    workspace = loads(strategy.decrypt(data["ciphertext"]))
    logger.debug("decrypted workspace %s", workspace.id)
    return workspace
