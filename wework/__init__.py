"""WeWork Callback Engine - Module Exports"""

from .errors import (
    AlignmentError,
    ConfigError,
    DecodeError,
    DecryptionFailed,
    EnvelopeParseError,
    LengthMismatchError,
    MessageParseError,
    PaddingError,
    SignatureInvalid,
    TenantMismatchError,
    TooShortError,
    WeWorkError,
    XMLParseError,
)
from .crypto import (
    AESMessageCipher,
    MessageCipher,
    SignatureVerifier,
    decode_aes_key,
    is_alphanumeric,
)
from .schemas import (
    MSG_TYPE_EVENT,
    MSG_TYPE_IMAGE,
    MSG_TYPE_TEXT,
    CallbackQuery,
    DecryptedMessage,
    EncryptedEnvelope,
    parse_envelope,
    parse_message,
)
from .mention import should_forward
from .service import CallbackOutcome, CallbackProtocolHandler, WeWorkCallbackService
from .stub import StubCallbackHandler, StubMessageCipher
from .webhook import router

__all__ = [
    # Errors
    "WeWorkError",
    "SignatureInvalid",
    "DecryptionFailed",
    "DecodeError",
    "AlignmentError",
    "PaddingError",
    "TooShortError",
    "LengthMismatchError",
    "TenantMismatchError",
    "XMLParseError",
    "EnvelopeParseError",
    "MessageParseError",
    "ConfigError",
    # Crypto
    "MessageCipher",
    "AESMessageCipher",
    "SignatureVerifier",
    "decode_aes_key",
    "is_alphanumeric",
    # Schemas
    "MSG_TYPE_TEXT",
    "MSG_TYPE_IMAGE",
    "MSG_TYPE_EVENT",
    "CallbackQuery",
    "EncryptedEnvelope",
    "DecryptedMessage",
    "parse_envelope",
    "parse_message",
    # Protocol
    "should_forward",
    "CallbackOutcome",
    "CallbackProtocolHandler",
    "WeWorkCallbackService",
    "StubMessageCipher",
    "StubCallbackHandler",
    # Router
    "router",
]
