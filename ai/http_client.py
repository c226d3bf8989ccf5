"""
AI Assistant HTTP Client

POSTs ChatRequest JSON to {base_url}/chat.
Retries failed attempts with exponential backoff (0.5s, 1s, 2s, ...).
The callback engine never retries on top of this.
"""

import asyncio
import logging
from typing import Optional

import httpx

from .base import AIForwarder, ForwardError
from .types import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF_BASE_S = 0.5


def retry_budget_s(
    timeout_s: float,
    retry: int,
    backoff_base_s: float = DEFAULT_BACKOFF_BASE_S,
) -> float:
    """
    Worst-case wall time of one forward: every attempt timing out plus
    every backoff sleep in between.
    """
    retry = max(0, retry)
    backoff = sum(backoff_base_s * (2 ** i) for i in range(retry))
    return (retry + 1) * timeout_s + backoff


class HTTPAIForwarder(AIForwarder):
    """
    Production AI forwarder over HTTP.

    Every attempt has its own timeout. Non-200 responses, transport
    errors and undecodable bodies all count as a failed attempt.
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 30.0,
        retry: int = 3,
        backoff_base_s: float = DEFAULT_BACKOFF_BASE_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the forwarder.

        Args:
            base_url: Assistant service root, e.g. "http://ai-svc:8080"
            timeout_s: Per-attempt timeout
            retry: Extra attempts after the first one
            backoff_base_s: Delay before the first retry; doubles each time
            transport: Optional httpx transport (tests inject MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.retry = max(0, retry)
        self.backoff_base_s = backoff_base_s
        self._transport = transport

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/chat"

    @property
    def retry_budget_s(self) -> float:
        """Longest a single forward() can take before giving up."""
        return retry_budget_s(self.timeout_s, self.retry, self.backoff_base_s)

    async def forward(self, request: ChatRequest) -> ChatResponse:
        attempts = self.retry + 1
        last_error: Optional[Exception] = None

        async with httpx.AsyncClient(
            timeout=self.timeout_s,
            transport=self._transport,
        ) as client:
            for attempt in range(attempts):
                try:
                    return await self._do_request(client, request)
                except ForwardError as e:
                    last_error = e
                    logger.debug(
                        f"AI request attempt {attempt + 1}/{attempts} failed: {e}",
                        extra={"user_id": request.user_id, "attempt": attempt + 1},
                    )

                if attempt < self.retry:
                    await asyncio.sleep(self.backoff_base_s * (2 ** attempt))

        logger.error(
            f"All retries failed for AI request: {last_error}",
            extra={"user_id": request.user_id, "attempts": attempts},
        )
        raise ForwardError(f"send message after {attempts} attempts: {last_error}")

    async def _do_request(
        self,
        client: httpx.AsyncClient,
        request: ChatRequest,
    ) -> ChatResponse:
        """Single POST; every failure is normalised to ForwardError."""
        try:
            response = await client.post(
                self.chat_url,
                json=request.to_payload(),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            raise ForwardError(f"execute request: {e}")

        if response.status_code != 200:
            raise ForwardError(
                f"unexpected status {response.status_code}: {response.text}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ForwardError(f"decode response: {e}")

        if not isinstance(data, dict):
            raise ForwardError("decode response: body is not a JSON object")

        reply = data.get("reply", "")
        return ChatResponse(reply=reply if isinstance(reply, str) else str(reply))
