from dataclasses import dataclass
from typing import Any, Dict, Optional

SOURCE_WEWORK = "wework"


@dataclass(frozen=True)
class ChatRequest:
    user_id: str
    content: str
    source: str = SOURCE_WEWORK
    group_id: Optional[str] = None   # omitted from the JSON body when empty

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "user_id": self.user_id,
            "content": self.content,
            "source": self.source,
        }
        if self.group_id:
            payload["group_id"] = self.group_id
        return payload


@dataclass(frozen=True)
class ChatResponse:
    reply: str
