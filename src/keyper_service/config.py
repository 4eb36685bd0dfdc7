"""
Configuration for Keyper Service.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class KeyperServiceConfig:
    """Keyper Service configuration settings."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080
    url: str = "http://localhost:8080"  # Public base URL baked into auth.sh/setup.sh

    # TLS (both must be set to enable)
    cert_file: str = ""
    key_file: str = ""

    # Directory settings
    directory_file: str = "directory.yaml"

    # Key refresh settings
    key_fetch_interval: float = 300.0  # Seconds between refresh passes
    fetch_timeout: float = 10.0  # Per-URL request timeout

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    @property
    def tls_enabled(self) -> bool:
        return bool(self.cert_file and self.key_file)

    @classmethod
    def from_env(cls) -> "KeyperServiceConfig":
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("KEYPER_HOST", "0.0.0.0"),
            port=int(os.getenv("KEYPER_PORT", "8080")),
            url=os.getenv("KEYPER_URL", "http://localhost:8080"),
            cert_file=os.getenv("KEYPER_CERT_FILE", ""),
            key_file=os.getenv("KEYPER_KEY_FILE", ""),
            directory_file=os.getenv("KEYPER_DIRECTORY_FILE", "directory.yaml"),
            key_fetch_interval=float(os.getenv("KEYPER_KEY_FETCH_INTERVAL", "300")),
            fetch_timeout=float(os.getenv("KEYPER_FETCH_TIMEOUT", "10")),
            log_level=os.getenv("KEYPER_LOG_LEVEL", "INFO"),
            log_file=os.getenv("KEYPER_LOG_FILE", ""),
        )


# Global config instance
_config: Optional[KeyperServiceConfig] = None


def get_config() -> KeyperServiceConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = KeyperServiceConfig.from_env()
    return _config


def set_config(config: KeyperServiceConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
