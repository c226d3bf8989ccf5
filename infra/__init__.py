"""
Infrastructure module exports.

Configuration and bootstrap for the callback engine and AI backend.
"""

from .config import InfraConfig, get_config, AIBackendType
from .bootstrap import InfraBootstrap, bootstrap_infrastructure

__all__ = [
    "InfraConfig",
    "get_config",
    "AIBackendType",
    "InfraBootstrap",
    "bootstrap_infrastructure",
]
