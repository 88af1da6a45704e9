"""
Secret Vault - authenticated encryption for the stored API key.

The key is derived with scrypt from the installation path and a constant
application salt, keyed by a random per-installation value kept in the data
directory. Secrets are sealed with AES-256-GCM:

    {"v": 1, "nonce": <b64>, "tag": <b64>, "ciphertext": <b64>}

Every failure degrades to None. Callers treat None as "not configured".

Security Note:
    Never log plaintext, ciphertext or key material.
"""

import base64
import binascii
import json
import logging
import os
from pathlib import Path

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .exceptions import VaultError

logger = logging.getLogger(__name__)

APP_SALT = b"rss-util.secret-vault.v1"
BLOB_VERSION = 1
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256
SEED_SIZE = 16
SEED_FILENAME = ".vault-salt"

# scrypt cost parameters
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class SecretVault:
    """Seals and opens a single secret string."""

    def __init__(self, data_dir: Path, install_path: str):
        """
        Args:
            data_dir: Data root; holds the per-installation seed file
            install_path: Installation-scoped value mixed into the key
        """
        self.data_dir = Path(data_dir)
        self.install_path = install_path

    @property
    def seed_path(self) -> Path:
        return self.data_dir / SEED_FILENAME

    def _load_seed(self, create: bool) -> bytes:
        """Read the installation seed, generating it once when allowed."""
        try:
            seed = self.seed_path.read_bytes()
        except FileNotFoundError:
            if not create:
                raise VaultError("Vault seed missing")
            self.data_dir.mkdir(parents=True, exist_ok=True)
            seed = os.urandom(SEED_SIZE)
            # O_EXCL so two first-time writers cannot install different seeds
            try:
                fd = os.open(self.seed_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            except FileExistsError:
                return self._load_seed(create=False)
            with os.fdopen(fd, "wb") as f:
                f.write(seed)
            return seed
        except OSError as e:
            raise VaultError(f"Vault seed unreadable: {e}") from e

        if len(seed) != SEED_SIZE:
            raise VaultError("Vault seed corrupt")
        return seed

    def derive_key(self, create: bool = True) -> bytes:
        """
        Derive the 32-byte symmetric key.

        Deterministic for a given installation: same install path and seed
        give the same key on every call.

        Raises:
            VaultError: If the seed is missing (and create is False) or corrupt
        """
        seed = self._load_seed(create)
        kdf = Scrypt(salt=seed, length=KEY_LENGTH, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
        return kdf.derive(self.install_path.encode("utf-8") + APP_SALT)

    def encrypt(self, plaintext: str | None) -> str | None:
        """
        Seal a secret.

        Returns:
            Sealed blob string, or None for empty input or on any failure
        """
        if not plaintext:
            return None

        try:
            key = self.derive_key(create=True)
            nonce = os.urandom(NONCE_SIZE)
            sealed = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), APP_SALT)
        except (VaultError, ValueError, OSError) as e:
            logger.warning(f"Secret encryption failed: {e}")
            return None

        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return json.dumps(
            {
                "v": BLOB_VERSION,
                "nonce": _b64(nonce),
                "tag": _b64(tag),
                "ciphertext": _b64(ciphertext),
            },
            separators=(",", ":"),
        )

    def decrypt(self, blob: str | None) -> str | None:
        """
        Open a sealed blob.

        Returns:
            The plaintext, or None if the blob is malformed, the tag does not
            verify, or the key has changed
        """
        if not blob or not isinstance(blob, str):
            return None

        try:
            bundle = json.loads(blob)
            if not isinstance(bundle, dict) or bundle.get("v") != BLOB_VERSION:
                raise VaultError("Unsupported sealed blob")
            nonce = base64.b64decode(bundle["nonce"], validate=True)
            tag = base64.b64decode(bundle["tag"], validate=True)
            ciphertext = base64.b64decode(bundle["ciphertext"], validate=True)
            if len(nonce) != NONCE_SIZE or len(tag) != TAG_SIZE:
                raise VaultError("Sealed blob has wrong nonce or tag size")
        except (ValueError, KeyError, TypeError, binascii.Error, VaultError) as e:
            logger.warning(f"Malformed sealed secret: {e}")
            return None

        try:
            key = self.derive_key(create=False)
            plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, APP_SALT)
        except InvalidTag:
            logger.warning("Sealed secret failed authentication (tampered or key changed)")
            return None
        except VaultError as e:
            logger.warning(f"Secret decryption failed: {e}")
            return None

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            return None
