# =============================================================================
# Plant Disease Gateway - Centralized Configuration
# =============================================================================
# Provides a single Config dataclass containing all tunable parameters for
# the gateway server and its client. Parameters are overridable via
# environment variables: GOOGLE_API_KEY and PORT keep their conventional
# names, everything else uses the PLANT_ prefix
# (e.g., PLANT_REQUEST_TIMEOUT_SECONDS=30).
# =============================================================================

import os
import tempfile
from dataclasses import dataclass, field
from typing import Optional


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be used to start the server."""


def _default_upload_dir() -> str:
    """Process-wide temporary directory for in-flight uploads."""
    return os.path.join(tempfile.gettempdir(), "uploads")


@dataclass
class Config:
    """
    Centralized configuration for the Plant Disease Gateway.

    All fields can be overridden via environment variables (see
    ``_ENV_OVERRIDES`` for the exact names).
    """

    # -- Credentials --
    google_api_key: Optional[str] = None

    # -- Networking --
    server_host: str = "0.0.0.0"
    server_port: int = 5005

    # -- Gemini --
    model_id: str = "gemini-2.5-flash"
    request_timeout_seconds: float = 60.0

    # -- Uploads --
    upload_dir: str = field(default_factory=_default_upload_dir)

    # -- Derived (computed post-init) --
    server_url: str = field(init=False)

    def __post_init__(self):
        """Apply environment variable overrides and compute derived fields."""
        self._apply_env_overrides()
        self.refresh_server_url()

    def _apply_env_overrides(self):
        """
        Override config fields from environment variables.

        Empty values are ignored so that ``PORT=`` in a .env file does not
        clobber the default.
        """
        for field_name, (env_key, field_type) in _ENV_OVERRIDES.items():
            env_value = os.environ.get(env_key)
            if env_value:
                setattr(self, field_name, field_type(env_value))

    def refresh_server_url(self):
        """Recompute ``server_url`` after host/port changes."""
        host = "127.0.0.1" if self.server_host == "0.0.0.0" else self.server_host
        self.server_url = f"http://{host}:{self.server_port}"

    def validate(self):
        """
        Check that the configuration can be used to serve requests.

        Raises:
            ConfigError: If GOOGLE_API_KEY is not set.
        """
        if not self.google_api_key:
            raise ConfigError(
                "GOOGLE_API_KEY is not set in the environment variables."
            )


_ENV_OVERRIDES = {
    "google_api_key": ("GOOGLE_API_KEY", str),
    "server_host": ("PLANT_SERVER_HOST", str),
    "server_port": ("PORT", int),
    "model_id": ("PLANT_MODEL_ID", str),
    "request_timeout_seconds": ("PLANT_REQUEST_TIMEOUT_SECONDS", float),
    "upload_dir": ("PLANT_UPLOAD_DIR", str),
}


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """
    Return the process Config instance, creating it on first call.

    Only entry points should call this; the server and client receive the
    resulting object explicitly.

    Returns:
        Config: The process configuration object.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance
