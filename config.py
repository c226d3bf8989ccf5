"""
Process configuration for the WeWork callback relay.

Loads environment variables from .env file and provides typed access to
listener and logging settings. Callback keys and the AI backend live in
infra.config.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Configuration class for the relay process."""

    # HTTP listener
    SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
    SERVER_PORT = int(os.getenv("SERVER_PORT", "8000"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()   # text | json

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


if __name__ == "__main__":
    # Test configuration loading
    print("Configuration loaded:")
    print(f"  Listener: {Config.SERVER_HOST}:{Config.SERVER_PORT}")
    print(f"  Log: {Config.LOG_LEVEL} ({Config.LOG_FORMAT})")
    print(f"  Environment: {Config.ENVIRONMENT}")
