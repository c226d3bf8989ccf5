"""
WeWork Callback Protocol

Orchestrates signature check, decryption and parsing for the two
callback flows. Stateless: nothing survives a request.

Handshake (GET):
    verify signature → decrypt echostr → return plaintext

Delivery (POST):
    parse envelope → verify signature → decrypt → parse message
    → mention? → submit ChatRequest to dispatcher (not awaited)
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from ai import ChatRequest, ForwardDispatcher, SOURCE_WEWORK

from .crypto import MessageCipher, SignatureVerifier
from .errors import DecryptionFailed, SignatureInvalid
from .mention import should_forward
from .schemas import CallbackQuery, DecryptedMessage, parse_envelope, parse_message

logger = logging.getLogger(__name__)


class CallbackOutcome(str, Enum):
    """How a successfully handled delivery ended."""

    FORWARDED = "forwarded"
    IGNORED = "ignored"
    DROPPED = "dropped"   # qualified, but the forward queue was full


class CallbackProtocolHandler(ABC):
    """
    Abstract callback protocol boundary.
    The HTTP routes must depend ONLY on this interface.
    """

    @abstractmethod
    def verify_url(self, query: CallbackQuery) -> bytes:
        """
        Handle the ownership handshake.

        Returns:
            Decrypted echostr bytes, to be echoed back verbatim

        Raises:
            SignatureInvalid: signature mismatch (decryption not attempted)
            DecryptionFailed: echostr could not be decrypted
        """
        raise NotImplementedError

    @abstractmethod
    def handle_callback(self, query: CallbackQuery, body: bytes) -> CallbackOutcome:
        """
        Handle a message delivery.

        Raises:
            EnvelopeParseError: body is not a valid envelope
            SignatureInvalid: signature mismatch
            DecryptionFailed: Encrypt could not be decrypted
            MessageParseError: decrypted body is not a valid message
        """
        raise NotImplementedError


class WeWorkCallbackService(CallbackProtocolHandler):
    """Production protocol handler."""

    def __init__(
        self,
        cipher: MessageCipher,
        verifier: SignatureVerifier,
        dispatcher: ForwardDispatcher,
    ):
        self.cipher = cipher
        self.verifier = verifier
        self.dispatcher = dispatcher

    def verify_url(self, query: CallbackQuery) -> bytes:
        echostr = query.echostr or ""

        if not self.verifier.verify(query.msg_signature, query.timestamp, query.nonce, echostr):
            logger.warning(
                "URL verification signature failed",
                extra={"timestamp": query.timestamp, "nonce": query.nonce},
            )
            raise SignatureInvalid()

        try:
            plaintext = self.cipher.decrypt(echostr)
        except DecryptionFailed as e:
            logger.error(
                f"Failed to decrypt echostr: {type(e).__name__}",
                extra={"timestamp": query.timestamp, "nonce": query.nonce},
            )
            raise

        return plaintext

    def handle_callback(self, query: CallbackQuery, body: bytes) -> CallbackOutcome:
        # 1. Envelope
        envelope = parse_envelope(body)

        # 2. Signature
        if not self.verifier.verify(
            query.msg_signature, query.timestamp, query.nonce, envelope.encrypt
        ):
            logger.warning(
                "Callback signature verification failed",
                extra={"timestamp": query.timestamp, "nonce": query.nonce},
            )
            raise SignatureInvalid()

        # 3. Decrypt
        try:
            plaintext = self.cipher.decrypt(envelope.encrypt)
        except DecryptionFailed as e:
            logger.error(
                f"Failed to decrypt message: {type(e).__name__}",
                extra={
                    "timestamp": query.timestamp,
                    "nonce": query.nonce,
                    "agent_id": envelope.agent_id,
                },
            )
            raise

        # 4. Message
        msg = parse_message(plaintext)

        # 5. Mention filter
        if not should_forward(msg.msg_type, msg.content):
            logger.debug(
                "Message ignored",
                extra={"msg_id": msg.msg_id, "msg_type": msg.msg_type},
            )
            return CallbackOutcome.IGNORED

        # 6. Detached forward
        return self._forward(msg)

    def _forward(self, msg: DecryptedMessage) -> CallbackOutcome:
        request = ChatRequest(
            user_id=msg.from_user_name,
            content=msg.content,
            source=SOURCE_WEWORK,
        )

        if not self.dispatcher.submit(request):
            return CallbackOutcome.DROPPED

        logger.info(
            "Mention queued for AI",
            extra={"msg_id": msg.msg_id, "from_user": msg.from_user_name},
        )
        return CallbackOutcome.FORWARDED
