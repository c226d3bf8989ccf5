"""
Infrastructure initialization and bootstrap.

Singleton pattern for wiring the callback engine from configuration:
cipher + verifier + forwarder → dispatcher → protocol handler.
"""

from typing import Optional

from ai import AIForwarder, ForwardDispatcher
from wework.crypto import MessageCipher, SignatureVerifier
from wework.service import CallbackProtocolHandler, WeWorkCallbackService

from .config import InfraConfig, get_config


class InfraBootstrap:
    """
    Bootstrap infrastructure based on configuration.

    Singleton pattern - single instance per process. Tests build their
    own instances and may inject a forwarder or cipher double.
    """

    _instance: Optional["InfraBootstrap"] = None

    def __init__(
        self,
        config: Optional[InfraConfig] = None,
        forwarder: Optional[AIForwarder] = None,
        cipher: Optional[MessageCipher] = None,
    ):
        """
        Validate configuration and build every component.

        Raises:
            ConfigError: configuration or key material is unusable
        """
        self.config = config or get_config()
        self.config.validate()

        self.cipher = cipher or self.config.create_cipher()
        self.verifier = self.config.create_verifier()
        self.forwarder = forwarder or self.config.create_forwarder()
        self.dispatcher = self.config.create_dispatcher(self.forwarder)
        self.callback_handler = WeWorkCallbackService(
            cipher=self.cipher,
            verifier=self.verifier,
            dispatcher=self.dispatcher,
        )

    @classmethod
    def get_instance(cls, config: Optional[InfraConfig] = None) -> "InfraBootstrap":
        """
        Get singleton instance.

        Args:
            config: Optional custom configuration (only used first time)

        Returns:
            Singleton InfraBootstrap instance
        """
        if cls._instance is None:
            cls._instance = cls(config)
        return cls._instance

    @classmethod
    def reset(cls):
        """Reset singleton (for testing)."""
        cls._instance = None

    def get_callback_handler(self) -> CallbackProtocolHandler:
        return self.callback_handler

    def get_verifier(self) -> SignatureVerifier:
        return self.verifier

    def get_dispatcher(self) -> ForwardDispatcher:
        return self.dispatcher

    async def start(self) -> None:
        """Start background workers."""
        await self.dispatcher.start()

    async def stop(self) -> None:
        """Stop background workers."""
        await self.dispatcher.stop()

    def __repr__(self) -> str:
        """String representation showing configured backends (no secrets)."""
        return (
            f"InfraBootstrap(corp_id={self.config.corp_id}, "
            f"ai={self.config.ai_backend}, "
            f"workers={self.config.forward_workers})"
        )


def bootstrap_infrastructure(config: Optional[InfraConfig] = None) -> InfraBootstrap:
    """
    Bootstrap all infrastructure backends.

    Args:
        config: Optional custom configuration

    Returns:
        InfraBootstrap instance with all backends initialized
    """
    return InfraBootstrap.get_instance(config)
