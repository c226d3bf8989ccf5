"""
Stub cipher and protocol handler for testing and offline development.

Deterministic, fast, and never fails silently.
"""

import base64
import binascii
from typing import List, Optional

from .crypto import MessageCipher
from .errors import DecodeError
from .schemas import CallbackQuery
from .service import CallbackOutcome, CallbackProtocolHandler


class StubMessageCipher(MessageCipher):
    """
    Plain base64 "cipher": no key, no padding, no wire layout.

    Records every ciphertext it is asked to decrypt so tests can assert
    that decryption was (or was not) attempted.
    """

    def __init__(self):
        self.decrypt_calls: List[str] = []

    def decrypt(self, encrypted: str) -> bytes:
        self.decrypt_calls.append(encrypted)
        try:
            return base64.b64decode(encrypted, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"base64 decode: {e}")

    def encrypt(self, plaintext: bytes) -> str:
        return base64.b64encode(plaintext).decode("ascii")


class StubCallbackHandler(CallbackProtocolHandler):
    """
    Protocol handler with canned results.

    Set error to make both flows raise it; otherwise verify_url returns
    echo and handle_callback returns outcome.
    """

    def __init__(
        self,
        echo: bytes = b"stub-echo",
        outcome: CallbackOutcome = CallbackOutcome.IGNORED,
        error: Optional[Exception] = None,
    ):
        self.echo = echo
        self.outcome = outcome
        self.error = error
        self.queries: List[CallbackQuery] = []
        self.bodies: List[bytes] = []

    def _maybe_raise(self) -> None:
        if self.error is not None:
            raise self.error

    def verify_url(self, query: CallbackQuery) -> bytes:
        self.queries.append(query)
        self._maybe_raise()
        return self.echo

    def handle_callback(self, query: CallbackQuery, body: bytes) -> CallbackOutcome:
        self.queries.append(query)
        self.bodies.append(body)
        self._maybe_raise()
        return self.outcome
