"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from infra.config import InfraConfig  # noqa: E402
from wework.crypto import AESMessageCipher, SignatureVerifier  # noqa: E402


CORP_ID = "wwcorpid0001"
TOKEN = "QDG6eK4mTokenXyz"
ENCODING_AES_KEY = "abcdefghijklmnopqrstuvwxyz0123456789ABCDEFG"


def make_config(**overrides) -> InfraConfig:
    """InfraConfig with valid test key material and the stub AI backend."""
    values = dict(
        corp_id=CORP_ID,
        token=TOKEN,
        encoding_aes_key=ENCODING_AES_KEY,
        agent_id=1000002,
        ai_backend="stub",
        ai_base_url="http://ai.test:8080",
        ai_timeout_s=5.0,
        ai_retry=2,
        forward_workers=2,
        forward_queue_size=10,
        forward_timeout_s=30.0,
    )
    values.update(overrides)
    return InfraConfig(**values)


def message_xml(
    content: str = "hello",
    msg_type: str = "text",
    from_user: str = "zhangsan",
    msg_id: str = "1234567890123456",
) -> bytes:
    """Decrypted message document as the platform sends it."""
    return (
        "<xml>"
        f"<ToUserName><![CDATA[{CORP_ID}]]></ToUserName>"
        f"<FromUserName><![CDATA[{from_user}]]></FromUserName>"
        "<CreateTime>1348831860</CreateTime>"
        f"<MsgType><![CDATA[{msg_type}]]></MsgType>"
        f"<Content><![CDATA[{content}]]></Content>"
        f"<MsgId>{msg_id}</MsgId>"
        "<AgentID>1000002</AgentID>"
        "</xml>"
    ).encode("utf-8")


def envelope_xml(encrypt: str) -> bytes:
    """Encrypted POST body wrapping a ciphertext field."""
    return (
        "<xml>"
        f"<ToUserName><![CDATA[{CORP_ID}]]></ToUserName>"
        "<AgentID><![CDATA[1000002]]></AgentID>"
        f"<Encrypt><![CDATA[{encrypt}]]></Encrypt>"
        "</xml>"
    ).encode("utf-8")


@pytest.fixture
def infra_config() -> InfraConfig:
    return make_config()


@pytest.fixture
def cipher() -> AESMessageCipher:
    return AESMessageCipher.from_encoding_key(ENCODING_AES_KEY, CORP_ID)


@pytest.fixture
def verifier() -> SignatureVerifier:
    return SignatureVerifier(TOKEN)
