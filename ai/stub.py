from typing import List, Optional

from .base import AIForwarder, ForwardError
from .types import ChatRequest, ChatResponse


class StubAIForwarder(AIForwarder):
    """
    Deterministic fake AI assistant for testing and offline development.

    Records every request it receives. Set fail=True to make every
    forward raise ForwardError.
    """

    def __init__(self, reply: str = "This is a stubbed reply.", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.requests: List[ChatRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def last_request(self) -> Optional[ChatRequest]:
        return self.requests[-1] if self.requests else None

    async def forward(self, request: ChatRequest) -> ChatResponse:
        self.requests.append(request)
        if self.fail:
            raise ForwardError("stub forwarder configured to fail")
        return ChatResponse(reply=self.reply)
