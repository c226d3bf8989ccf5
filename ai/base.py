from abc import ABC, abstractmethod
from typing import Optional

from .types import SOURCE_WEWORK, ChatRequest, ChatResponse


class ForwardError(Exception):
    """The AI assistant could not be reached or answered badly."""
    pass


class AIForwarder(ABC):
    """
    Abstract AI assistant boundary.
    The callback engine must depend ONLY on this interface.
    """

    @abstractmethod
    async def forward(self, request: ChatRequest) -> ChatResponse:
        """
        Relay a message to the AI assistant.

        Raises:
            ForwardError: after the implementation gives up
        """
        raise NotImplementedError

    async def forward_message(
        self,
        user_id: str,
        content: str,
        source: str = SOURCE_WEWORK,
        group_id: Optional[str] = None,
    ) -> str:
        """
        Convenience API for callers that only want the reply text.

        The callback engine does not use it: the dispatcher calls forward()
        with the ChatRequest built by the protocol handler.
        """
        response = await self.forward(
            ChatRequest(user_id=user_id, content=content, source=source, group_id=group_id)
        )
        return response.reply
