"""
WeWork Callback Webhook Tests

End-to-end flow: HTTP → signature → decrypt → parse → dispatcher → AI stub

KEY ASSERTION: the platform always gets its answer before the forward runs
"""

import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from ai import StubAIForwarder
from conftest import CORP_ID, envelope_xml, make_config, message_xml
from infra import InfraBootstrap
from main import JSONLineFormatter, create_app
from wework.crypto import AESMessageCipher
from wework.errors import (
    DecodeError,
    EnvelopeParseError,
    MessageParseError,
    PaddingError,
    SignatureInvalid,
)
from wework.service import CallbackOutcome
from wework.stub import StubCallbackHandler, StubMessageCipher


TIMESTAMP = "1409659813"
NONCE = "1372623149"


def wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def stub_forwarder():
    return StubAIForwarder(reply="on it")


@pytest.fixture
def infra(stub_forwarder):
    return InfraBootstrap(make_config(), forwarder=stub_forwarder)


@pytest.fixture
def client(infra):
    with TestClient(create_app(infra)) as test_client:
        yield test_client


def sign(infra, encrypt: str, timestamp: str = TIMESTAMP, nonce: str = NONCE) -> dict:
    return {
        "msg_signature": infra.verifier.compute_signature(timestamp, nonce, encrypt),
        "timestamp": timestamp,
        "nonce": nonce,
    }


class TestURLVerification:
    """GET /callback"""

    def test_handshake_success(self, infra, client):
        """Signed echostr for wwcorpid0001 is echoed back decrypted."""
        assert infra.config.corp_id == CORP_ID == "wwcorpid0001"
        echostr = infra.cipher.encrypt(b"1234567890")

        response = client.get("/callback", params={**sign(infra, echostr), "echostr": echostr})

        assert response.status_code == 200
        assert response.text == "1234567890"

    def test_handshake_echoes_non_utf8_bytes_verbatim(self, infra, client):
        echostr = infra.cipher.encrypt(b"\xff\xfe1234")

        response = client.get("/callback", params={**sign(infra, echostr), "echostr": echostr})

        assert response.status_code == 200
        assert response.content == b"\xff\xfe1234"

    def test_handshake_bad_nonce_returns_403_without_decrypting(self, stub_forwarder):
        stub_cipher = StubMessageCipher()
        infra = InfraBootstrap(make_config(), forwarder=stub_forwarder, cipher=stub_cipher)
        echostr = stub_cipher.encrypt(b"1234567890")
        params = {**sign(infra, echostr), "echostr": echostr}
        params["nonce"] = "1372623148"

        with TestClient(create_app(infra)) as client:
            response = client.get("/callback", params=params)

        assert response.status_code == 403
        assert stub_cipher.decrypt_calls == []

    def test_handshake_missing_params_returns_403(self, client):
        response = client.get("/callback")
        assert response.status_code == 403

    def test_handshake_undecryptable_echostr_returns_500(self, infra, client):
        other = AESMessageCipher.from_encoding_key(
            infra.config.encoding_aes_key, "wwcorpid0002"
        )
        echostr = other.encrypt(b"1234567890")

        response = client.get("/callback", params={**sign(infra, echostr), "echostr": echostr})

        assert response.status_code == 500
        assert "wwcorpid" not in response.text


class TestMessageCallback:
    """POST /callback"""

    def test_non_mention_text_returns_success_without_forward(
        self, infra, client, stub_forwarder
    ):
        encrypt = infra.cipher.encrypt(message_xml(content="hello"))

        response = client.post(
            "/callback", params=sign(infra, encrypt), content=envelope_xml(encrypt)
        )

        assert response.status_code == 200
        assert response.text == "success"
        time.sleep(0.05)
        assert stub_forwarder.call_count == 0

    def test_mention_returns_success_and_forwards_once(self, infra, client, stub_forwarder):
        encrypt = infra.cipher.encrypt(
            message_xml(content="@assistant please help", from_user="zhaoliu")
        )

        response = client.post(
            "/callback", params=sign(infra, encrypt), content=envelope_xml(encrypt)
        )

        assert response.status_code == 200
        assert response.text == "success"
        assert wait_for(lambda: stub_forwarder.call_count >= 1)
        time.sleep(0.05)
        assert stub_forwarder.call_count == 1

        forwarded = stub_forwarder.last_request
        assert forwarded.content == "@assistant please help"
        assert forwarded.user_id == "zhaoliu"
        assert forwarded.source == "wework"

    def test_forward_failure_does_not_reach_caller(self, infra, client, stub_forwarder):
        stub_forwarder.fail = True
        encrypt = infra.cipher.encrypt(message_xml(content="@assistant"))

        response = client.post(
            "/callback", params=sign(infra, encrypt), content=envelope_xml(encrypt)
        )

        assert response.status_code == 200
        assert response.text == "success"
        assert wait_for(lambda: stub_forwarder.call_count == 1)

    def test_malformed_envelope_returns_400_without_signature_check(self, infra, client):
        with patch.object(infra.verifier, "verify", wraps=infra.verifier.verify) as verify:
            response = client.post(
                "/callback", params=sign(infra, "x"), content=b"this is not xml"
            )

        assert response.status_code == 400
        verify.assert_not_called()

    def test_bad_signature_returns_403(self, infra, client):
        encrypt = infra.cipher.encrypt(message_xml(content="@assistant"))
        params = sign(infra, encrypt)
        params["timestamp"] = "1409659814"

        response = client.post("/callback", params=params, content=envelope_xml(encrypt))

        assert response.status_code == 403

    def test_undecryptable_message_returns_500(self, infra, client):
        encrypt = "AAAAAAAAAAAAAAAAAAAAAA=="   # 16 zero bytes

        response = client.post(
            "/callback", params=sign(infra, encrypt), content=envelope_xml(encrypt)
        )

        assert response.status_code == 500
        assert response.text == "internal server error"

    def test_malformed_decrypted_message_returns_400(self, infra, client):
        encrypt = infra.cipher.encrypt(b"<xml><Content>broken")

        response = client.post(
            "/callback", params=sign(infra, encrypt), content=envelope_xml(encrypt)
        )

        assert response.status_code == 400


class TestStatusMapping:
    """Protocol errors → HTTP status, via a stub handler."""

    @pytest.fixture
    def app(self, infra):
        return create_app(infra)

    @pytest.mark.parametrize("error, status", [
        (SignatureInvalid(), 403),
        (DecodeError("x"), 500),
        (PaddingError("x"), 500),
        (RuntimeError("unexpected"), 500),
    ])
    def test_verify_url_mapping(self, app, error, status):
        with TestClient(app) as client:
            app.state.callback_handler = StubCallbackHandler(error=error)
            response = client.get("/callback", params={"echostr": "e"})
        assert response.status_code == status

    @pytest.mark.parametrize("error, status", [
        (EnvelopeParseError("x"), 400),
        (MessageParseError("x"), 400),
        (SignatureInvalid(), 403),
        (PaddingError("x"), 500),
        (RuntimeError("unexpected"), 500),
    ])
    def test_handle_callback_mapping(self, app, error, status):
        with TestClient(app) as client:
            app.state.callback_handler = StubCallbackHandler(error=error)
            response = client.post("/callback", content=b"<xml/>")
        assert response.status_code == status

    @pytest.mark.parametrize("outcome", list(CallbackOutcome))
    def test_every_outcome_is_success(self, app, outcome):
        with TestClient(app) as client:
            app.state.callback_handler = StubCallbackHandler(outcome=outcome)
            response = client.post("/callback", content=b"<xml/>")
        assert response.status_code == 200
        assert response.text == "success"

    def test_query_params_reach_handler(self, app):
        with TestClient(app) as client:
            handler = StubCallbackHandler(echo=b"plain")
            app.state.callback_handler = handler
            response = client.get(
                "/callback",
                params={"msg_signature": "s", "timestamp": "t", "nonce": "n", "echostr": "a+b/c="},
            )

        assert response.text == "plain"
        query = handler.queries[0]
        assert (query.msg_signature, query.timestamp, query.nonce, query.echostr) == (
            "s", "t", "n", "a+b/c="
        )


class TestHealth:
    def test_health_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.text == "ok"

    def test_health_without_callback_engine(self, infra):
        app = create_app(infra)
        with TestClient(app) as client:
            app.state.callback_handler = None
            response = client.get("/health")
        assert response.text == "ok"


class TestJSONLogging:
    def test_extra_fields_are_included(self):
        import json
        import logging

        record = logging.LogRecord(
            "wework.service", logging.WARNING, __file__, 1, "signature failed", None, None
        )
        record.nonce = "1372623149"

        entry = json.loads(JSONLineFormatter().format(record))

        assert entry["msg"] == "signature failed"
        assert entry["level"] == "WARNING"
        assert entry["nonce"] == "1372623149"
