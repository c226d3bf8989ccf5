"""
Infrastructure configuration system.

Environment-based callback keys and AI backend selection.
validate() fails fast at startup with the name of the offending field.
"""

import os
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urlparse

from ai import AIForwarder, ForwardDispatcher, HTTPAIForwarder, StubAIForwarder, retry_budget_s
from wework.crypto import (
    ENCODING_AES_KEY_LENGTH,
    MAX_TOKEN_LENGTH,
    AESMessageCipher,
    MessageCipher,
    SignatureVerifier,
    is_alphanumeric,
)
from wework.errors import ConfigError


AIBackendType = Literal["http", "stub"]


@dataclass(frozen=True)
class InfraConfig:
    """Infrastructure configuration from environment."""

    # WeWork callback
    corp_id: str
    token: str
    encoding_aes_key: str
    agent_id: int

    # AI assistant
    ai_backend: AIBackendType
    ai_base_url: str
    ai_timeout_s: float
    ai_retry: int

    # Forward dispatcher
    forward_workers: int
    forward_queue_size: int
    forward_timeout_s: float

    @classmethod
    def from_env(cls) -> "InfraConfig":
        """
        Load configuration from environment variables.

        Callback keys have no defaults and must be set; the AI backend
        defaults to a local HTTP assistant. FORWARD_TIMEOUT_S defaults to
        the AI client's full retry budget.
        """
        try:
            ai_timeout_s = float(os.getenv("AI_TIMEOUT_S", "30"))
            ai_retry = int(os.getenv("AI_RETRY", "3"))
            forward_timeout = os.getenv("FORWARD_TIMEOUT_S")
            forward_timeout_s = (
                float(forward_timeout)
                if forward_timeout
                else retry_budget_s(ai_timeout_s, ai_retry)
            )

            return cls(
                # WeWork Configuration
                corp_id=os.getenv("WEWORK_CORP_ID", ""),
                token=os.getenv("WEWORK_TOKEN", ""),
                encoding_aes_key=os.getenv("WEWORK_ENCODING_AES_KEY", ""),
                agent_id=int(os.getenv("WEWORK_AGENT_ID", "0")),

                # AI Configuration
                ai_backend=os.getenv("AI_BACKEND", "http").lower(),  # type: ignore
                ai_base_url=os.getenv("AI_BASE_URL", "http://localhost:8080"),
                ai_timeout_s=ai_timeout_s,
                ai_retry=ai_retry,

                # Dispatcher Configuration
                forward_workers=int(os.getenv("FORWARD_WORKERS", "4")),
                forward_queue_size=int(os.getenv("FORWARD_QUEUE_SIZE", "100")),
                forward_timeout_s=forward_timeout_s,
            )
        except ValueError as e:
            raise ConfigError(f"invalid numeric setting: {e}")

    def validate(self) -> None:
        """
        Check every field, raising on the first problem.

        Raises:
            ConfigError: message is prefixed with the offending field
        """
        if not self.corp_id:
            raise ConfigError("wework.corp_id: must not be empty")

        if not self.token:
            raise ConfigError("wework.token: must not be empty")
        if len(self.token) > MAX_TOKEN_LENGTH:
            raise ConfigError(
                f"wework.token: must be at most {MAX_TOKEN_LENGTH} characters, "
                f"got {len(self.token)}"
            )
        if not is_alphanumeric(self.token):
            raise ConfigError("wework.token: must contain only alphanumeric characters")

        if len(self.encoding_aes_key) != ENCODING_AES_KEY_LENGTH:
            raise ConfigError(
                f"wework.encoding_aes_key: must be exactly {ENCODING_AES_KEY_LENGTH} "
                f"characters, got {len(self.encoding_aes_key)}"
            )
        if not is_alphanumeric(self.encoding_aes_key):
            raise ConfigError(
                "wework.encoding_aes_key: must contain only alphanumeric characters"
            )

        if self.ai_backend not in ("http", "stub"):
            raise ConfigError(f"ai.backend: unknown backend {self.ai_backend!r}")
        parsed = urlparse(self.ai_base_url)
        if not self.ai_base_url:
            raise ConfigError("ai.base_url: must not be empty")
        if not parsed.scheme or not parsed.netloc:
            raise ConfigError("ai.base_url: must include scheme and host")
        if self.ai_timeout_s <= 0:
            raise ConfigError("ai.timeout: must be positive")
        if self.ai_retry < 0:
            raise ConfigError("ai.retry: must not be negative")

        if self.forward_workers < 1:
            raise ConfigError("forward.workers: must be at least 1")
        if self.forward_queue_size < 1:
            raise ConfigError("forward.queue_size: must be at least 1")
        if self.forward_timeout_s <= 0:
            raise ConfigError("forward.timeout: must be positive")
        if self.ai_backend == "http":
            budget = retry_budget_s(self.ai_timeout_s, self.ai_retry)
            if self.forward_timeout_s < budget:
                raise ConfigError(
                    f"forward.timeout: {self.forward_timeout_s}s is shorter than the "
                    f"AI client's retry budget of {budget}s "
                    f"({self.ai_retry + 1} attempts x {self.ai_timeout_s}s plus backoff)"
                )

    def create_cipher(self) -> MessageCipher:
        """Create the AES message cipher from the EncodingAESKey."""
        return AESMessageCipher.from_encoding_key(self.encoding_aes_key, self.corp_id)

    def create_verifier(self) -> SignatureVerifier:
        """Create the signature verifier for the shared token."""
        return SignatureVerifier(self.token)

    def create_forwarder(self) -> AIForwarder:
        """Create AI forwarder instance based on configuration."""
        if self.ai_backend == "stub":
            return StubAIForwarder()
        return HTTPAIForwarder(
            base_url=self.ai_base_url,
            timeout_s=self.ai_timeout_s,
            retry=self.ai_retry,
        )

    def create_dispatcher(self, forwarder: AIForwarder) -> ForwardDispatcher:
        """Create the bounded forward dispatcher (not started)."""
        return ForwardDispatcher(
            forwarder,
            workers=self.forward_workers,
            queue_size=self.forward_queue_size,
            timeout_s=self.forward_timeout_s,
        )


def get_config() -> InfraConfig:
    """Get global infrastructure configuration."""
    return InfraConfig.from_env()
