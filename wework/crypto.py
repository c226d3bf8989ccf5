"""
WeWork Message Crypto

SECURITY BOUNDARY - signature verification and the AES message cipher.
No I/O. No logging of key material or plaintext. No state mutation.

Signature:
    SHA1(sort(token, timestamp, nonce, encrypt)) as lowercase hex

Wire payload (inside the cipher):
    random(16) | msg_len(4, big-endian) | msg | corp_id

Cipher:
    AES-256-CBC, IV = aes_key[:16], PKCS#7 padding to 16-byte blocks,
    standard base64 on the outside.
"""

import base64
import binascii
import hashlib
import hmac
import os
import re
import struct
from abc import ABC, abstractmethod

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import (
    AlignmentError,
    ConfigError,
    DecodeError,
    LengthMismatchError,
    PaddingError,
    TenantMismatchError,
    TooShortError,
)

BLOCK_SIZE_BYTES = 16
AES_KEY_BYTES = 32
RANDOM_PREFIX_BYTES = 16
HEADER_BYTES = RANDOM_PREFIX_BYTES + 4
MAX_TOKEN_LENGTH = 32
ENCODING_AES_KEY_LENGTH = 43

# Compiled once per process; shared with config validation
ALPHANUMERIC_RE = re.compile(r"[A-Za-z0-9]+")


def is_alphanumeric(value: str) -> bool:
    """True when value is non-empty and only ASCII letters and digits."""
    return ALPHANUMERIC_RE.fullmatch(value) is not None


def decode_aes_key(encoding_aes_key: str) -> bytes:
    """
    Derive the 32-byte AES key from the 43-character EncodingAESKey.

    The platform drops the trailing base64 pad character, so one "=" is
    appended before decoding.

    Raises:
        ConfigError: key is not valid base64 or does not decode to 32 bytes
    """
    try:
        aes_key = base64.b64decode(encoding_aes_key + "=", validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigError(f"encoding_aes_key is not valid base64: {e}")

    if len(aes_key) != AES_KEY_BYTES:
        raise ConfigError(
            f"invalid aes key length: got {len(aes_key)}, want {AES_KEY_BYTES}"
        )
    return aes_key


# ============================================================================
# SIGNATURE
# ============================================================================

class SignatureVerifier:
    """
    Deterministic SHA1 signature over (token, timestamp, nonce, encrypt).

    The same routine signs and verifies, so tests and encrypted replies
    build signatures with compute_signature().
    """

    def __init__(self, token: str):
        if not token:
            raise ConfigError("token must not be empty")
        if len(token) > MAX_TOKEN_LENGTH:
            raise ConfigError(
                f"token must be at most {MAX_TOKEN_LENGTH} characters, got {len(token)}"
            )
        if not is_alphanumeric(token):
            raise ConfigError("token must contain only alphanumeric characters")
        self._token = token

    def compute_signature(self, timestamp: str, nonce: str, encrypt: str) -> str:
        """Sort the four strings as bytes, join, SHA1, lowercase hex."""
        parts = sorted(
            p.encode("utf-8") for p in (self._token, timestamp, nonce, encrypt)
        )
        return hashlib.sha1(b"".join(parts)).hexdigest()

    def verify(self, signature: str, timestamp: str, nonce: str, encrypt: str) -> bool:
        """Exact, case-sensitive match against the computed signature."""
        expected = self.compute_signature(timestamp, nonce, encrypt)
        return hmac.compare_digest(
            expected.encode("ascii"), signature.encode("utf-8")
        )


# ============================================================================
# CIPHER
# ============================================================================

class MessageCipher(ABC):
    """
    Abstract message cipher boundary.
    The protocol handler must depend ONLY on this interface.
    """

    @abstractmethod
    def decrypt(self, encrypted: str) -> bytes:
        """
        Decrypt a base64 ciphertext field and return the message body.

        Raises:
            DecryptionFailed: one of its subclasses, naming the failed stage
        """
        raise NotImplementedError

    @abstractmethod
    def encrypt(self, plaintext: bytes) -> str:
        """Encrypt a message body into a base64 ciphertext field."""
        raise NotImplementedError


class AESMessageCipher(MessageCipher):
    """
    Production cipher using AES-256-CBC with the platform IV convention.

    The IV is the first 16 bytes of the key rather than a per-message
    random IV; interoperability with the platform requires it.
    """

    def __init__(self, aes_key: bytes, corp_id: str):
        if len(aes_key) != AES_KEY_BYTES:
            raise ConfigError(
                f"invalid aes key length: got {len(aes_key)}, want {AES_KEY_BYTES}"
            )
        if not corp_id:
            raise ConfigError("corp_id must not be empty")
        self._aes_key = bytes(aes_key)
        self._iv = self._aes_key[:BLOCK_SIZE_BYTES]
        self._corp_id = corp_id.encode("utf-8")

    @classmethod
    def from_encoding_key(cls, encoding_aes_key: str, corp_id: str) -> "AESMessageCipher":
        """Build from the 43-character EncodingAESKey string."""
        return cls(decode_aes_key(encoding_aes_key), corp_id)

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._aes_key), modes.CBC(self._iv))

    def decrypt(self, encrypted: str) -> bytes:
        # 1. Base64
        try:
            ciphertext = base64.b64decode(encrypted, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"base64 decode: {e}")

        # 2. Block alignment
        if len(ciphertext) == 0 or len(ciphertext) % BLOCK_SIZE_BYTES != 0:
            raise AlignmentError(
                f"ciphertext length {len(ciphertext)} is not a multiple "
                f"of block size {BLOCK_SIZE_BYTES}"
            )

        # 3. AES-CBC
        decryptor = self._cipher().decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        # 4. Padding
        plaintext = pkcs7_unpad(padded)

        # 5-6. Header and declared length
        if len(plaintext) < HEADER_BYTES:
            raise TooShortError(f"plaintext too short: {len(plaintext)} bytes")

        (msg_len,) = struct.unpack(">I", plaintext[RANDOM_PREFIX_BYTES:HEADER_BYTES])
        if HEADER_BYTES + msg_len > len(plaintext):
            raise LengthMismatchError(
                f"invalid msg length: {msg_len}, plaintext length: {len(plaintext)}"
            )

        # 7. Tenant
        msg = plaintext[HEADER_BYTES:HEADER_BYTES + msg_len]
        corp_id = plaintext[HEADER_BYTES + msg_len:]
        if not hmac.compare_digest(corp_id, self._corp_id):
            raise TenantMismatchError("corp_id mismatch")

        return msg

    def encrypt(self, plaintext: bytes) -> str:
        buf = b"".join([
            os.urandom(RANDOM_PREFIX_BYTES),
            struct.pack(">I", len(plaintext)),
            plaintext,
            self._corp_id,
        ])

        encryptor = self._cipher().encryptor()
        ciphertext = encryptor.update(pkcs7_pad(buf)) + encryptor.finalize()
        return base64.b64encode(ciphertext).decode("ascii")


# ============================================================================
# PADDING
# ============================================================================

def pkcs7_pad(data: bytes) -> bytes:
    """Pad to a 16-byte multiple; aligned input gets a full extra block."""
    padder = padding.PKCS7(BLOCK_SIZE_BYTES * 8).padder()
    return padder.update(data) + padder.finalize()


def pkcs7_unpad(padded: bytes) -> bytes:
    """
    Strip PKCS#7 padding, checking every padding byte.

    Raises:
        PaddingError: pad value is 0, exceeds the block size or the data,
            or any of the trailing pad bytes differs from the pad value
    """
    if not padded:
        raise PaddingError("empty data")

    pad = padded[-1]
    if pad > len(padded):
        raise PaddingError(f"padding {pad} exceeds data length {len(padded)}")

    unpadder = padding.PKCS7(BLOCK_SIZE_BYTES * 8).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError:
        raise PaddingError(f"invalid padding (last byte {pad})")
