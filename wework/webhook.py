"""
WeWork Callback Receiver

FastAPI router for the platform callback URL.
No crypto here. Maps protocol errors to HTTP status codes.

    GET  /callback  → URL verification (echo decrypted echostr)
    POST /callback  → message delivery ("success")

Status mapping:
    SignatureInvalid   → 403
    XMLParseError      → 400
    DecryptionFailed   → 500
    anything else      → 500
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse, Response

from .errors import DecryptionFailed, SignatureInvalid, XMLParseError
from .schemas import CallbackQuery
from .service import CallbackProtocolHandler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WeWork Callback"])

SUCCESS_BODY = "success"


def get_callback_handler(request: Request) -> CallbackProtocolHandler:
    """Protocol handler wired at startup (see infra.bootstrap)."""
    return request.app.state.callback_handler


def _forbidden() -> PlainTextResponse:
    return PlainTextResponse("forbidden", status_code=status.HTTP_403_FORBIDDEN)


def _bad_request() -> PlainTextResponse:
    return PlainTextResponse("bad request", status_code=status.HTTP_400_BAD_REQUEST)


def _internal_error() -> PlainTextResponse:
    return PlainTextResponse(
        "internal server error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# ============================================================================
# URL VERIFICATION (Setup only)
# ============================================================================

@router.get("/callback", response_class=PlainTextResponse)
def verify_callback_url(
    msg_signature: str = "",
    timestamp: str = "",
    nonce: str = "",
    echostr: str = "",
    handler: CallbackProtocolHandler = Depends(get_callback_handler),
):
    """
    Prove ownership of the callback URL.

    Returns:
        The decrypted echostr bytes, unmodified
    """
    query = CallbackQuery(
        msg_signature=msg_signature,
        timestamp=timestamp,
        nonce=nonce,
        echostr=echostr,
    )

    try:
        plaintext = handler.verify_url(query)
    except SignatureInvalid:
        return _forbidden()
    except DecryptionFailed:
        logger.error(
            "URL verification failed",
            extra={"timestamp": timestamp, "nonce": nonce},
        )
        return _internal_error()
    except Exception as e:
        logger.error(f"Unexpected URL verification error: {e}", exc_info=True)
        return _internal_error()

    return Response(content=plaintext, media_type="text/plain")


# ============================================================================
# MESSAGE CALLBACK
# ============================================================================

@router.post("/callback", response_class=PlainTextResponse)
async def receive_callback(
    request: Request,
    msg_signature: str = "",
    timestamp: str = "",
    nonce: str = "",
    handler: CallbackProtocolHandler = Depends(get_callback_handler),
):
    """
    Receive an encrypted message callback.

    The AI forward (if any) is queued, never awaited, so the platform
    always gets its acknowledgment immediately.
    """
    body = await request.body()
    query = CallbackQuery(msg_signature=msg_signature, timestamp=timestamp, nonce=nonce)

    try:
        outcome = handler.handle_callback(query, body)
    except XMLParseError as e:
        logger.warning(f"Callback XML parse failed: {e}")
        return _bad_request()
    except SignatureInvalid:
        return _forbidden()
    except DecryptionFailed:
        logger.error(
            "Callback processing failed",
            extra={"timestamp": timestamp, "nonce": nonce},
        )
        return _internal_error()
    except Exception as e:
        logger.error(f"Unexpected callback error: {e}", exc_info=True)
        return _internal_error()

    logger.debug(f"Callback handled: {outcome.value}")
    return PlainTextResponse(SUCCESS_BODY)
