"""
WeWork Callback Schemas

PURE DATA MODELS + XML DECODING - NO CRYPTO, NO I/O
Defines the contract between the WeWork platform and the callback engine.
"""

import xml.etree.ElementTree as ET
from typing import Optional

from pydantic import BaseModel, Field

from .errors import EnvelopeParseError, MessageParseError, XMLParseError


# Message type tags
MSG_TYPE_TEXT = "text"
MSG_TYPE_IMAGE = "image"
MSG_TYPE_EVENT = "event"


# ============================================================================
# CALLBACK QUERY (URL PARAMETERS)
# ============================================================================

class CallbackQuery(BaseModel):
    """
    Query parameters carried by every callback request.

    echostr is only present on the GET ownership handshake.
    """

    msg_signature: str = Field("", description="SHA1 signature from the platform")
    timestamp: str = Field("", description="Request timestamp, as sent")
    nonce: str = Field("", description="Request nonce, as sent")
    echostr: Optional[str] = Field(
        None,
        description="Encrypted challenge (handshake only)"
    )

    class Config:
        frozen = True


# ============================================================================
# ENCRYPTED ENVELOPE (POST BODY)
# ============================================================================

class EncryptedEnvelope(BaseModel):
    """
    Outer XML delivered on POST.

    <xml><ToUserName/><AgentID/><Encrypt/></xml>
    """

    to_user_name: str = ""
    agent_id: str = ""
    encrypt: str = ""

    class Config:
        frozen = True


# ============================================================================
# DECRYPTED MESSAGE
# ============================================================================

class DecryptedMessage(BaseModel):
    """Message document recovered from the wire payload."""

    to_user_name: str = ""
    from_user_name: str = ""
    create_time: int = 0
    msg_type: str = ""
    content: str = ""
    msg_id: str = ""
    agent_id: int = 0

    class Config:
        frozen = True


# ============================================================================
# XML DECODING
# ============================================================================

def _parse_root(data: bytes, error_cls: type) -> ET.Element:
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise error_cls(f"malformed xml: {e}")

    if root.tag != "xml":
        raise error_cls(f"expected element type <xml> but have <{root.tag}>")
    return root


def _text(root: ET.Element, tag: str) -> str:
    node = root.find(tag)
    if node is None or node.text is None:
        return ""
    return node.text


def _int(root: ET.Element, tag: str, error_cls: type) -> int:
    raw = _text(root, tag).strip()
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        raise error_cls(f"{tag} is not an integer: {raw!r}")


def parse_envelope(body: bytes) -> EncryptedEnvelope:
    """
    Parse the POST body into an EncryptedEnvelope.

    Missing child elements decode as empty strings; a missing Encrypt
    then fails signature verification downstream.

    Raises:
        EnvelopeParseError: body is not well-formed <xml> document
    """
    root = _parse_root(body, EnvelopeParseError)
    return EncryptedEnvelope(
        to_user_name=_text(root, "ToUserName"),
        agent_id=_text(root, "AgentID"),
        encrypt=_text(root, "Encrypt"),
    )


def parse_message(plaintext: bytes) -> DecryptedMessage:
    """
    Parse a decrypted message body.

    Raises:
        MessageParseError: not well-formed, or CreateTime/AgentID not integers
    """
    root = _parse_root(plaintext, MessageParseError)
    return DecryptedMessage(
        to_user_name=_text(root, "ToUserName"),
        from_user_name=_text(root, "FromUserName"),
        create_time=_int(root, "CreateTime", MessageParseError),
        msg_type=_text(root, "MsgType"),
        content=_text(root, "Content"),
        msg_id=_text(root, "MsgId"),
        agent_id=_int(root, "AgentID", MessageParseError),
    )


__all__ = [
    "MSG_TYPE_TEXT",
    "MSG_TYPE_IMAGE",
    "MSG_TYPE_EVENT",
    "CallbackQuery",
    "EncryptedEnvelope",
    "DecryptedMessage",
    "XMLParseError",
    "parse_envelope",
    "parse_message",
]
