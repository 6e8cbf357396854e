"""Command-line defaults loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from jwtcli.crypto.types import SupportedAlgorithm

DEFAULT_ALGORITHM = SupportedAlgorithm.HS256
DEFAULT_EXPIRY = "+30 min"
DEFAULT_LEEWAY_SECONDS = 1000
DEFAULT_LOG_LEVEL = "WARNING"


class JwtSettings(BaseSettings):
    """Encode/decode defaults, overridable with JWT_* variables."""

    model_config = SettingsConfigDict(env_prefix="JWT_")

    default_algorithm: SupportedAlgorithm = DEFAULT_ALGORITHM
    default_expiry: str = DEFAULT_EXPIRY
    leeway: int = DEFAULT_LEEWAY_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL
