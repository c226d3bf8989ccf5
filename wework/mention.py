"""
Mention detection.

Decides whether a decrypted message is relayed to the AI assistant.
A literal "@" anywhere in a text message counts as a mention; structured
mention markup is not interpreted.
"""

from .schemas import MSG_TYPE_TEXT

MENTION_MARKER = "@"


def should_forward(msg_type: str, content: str) -> bool:
    """True for text messages whose content contains "@"."""
    return msg_type == MSG_TYPE_TEXT and MENTION_MARKER in content
