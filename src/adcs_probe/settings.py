"""
ADCS Expiry Probe - Settings

Settings are loaded from environment variables with the ADCS_PROBE_
prefix, or from a .env file in the working directory.  Command line
options and query parameters take precedence over these values.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Probe configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ADCS_PROBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Path to certutil.exe (usually on system PATH on Windows)
    CERTUTIL_PATH: str = "certutil.exe"
    CERTUTIL_TIMEOUT: int = 300  # seconds per certutil invocation

    # Default CA config string ("host\CA Name") when --ca is not given
    CA_CONFIG: str = ""

    # Length of the default expiration window, starting now
    WINDOW_MONTHS: int = 12

    # Look up template display names via certutil -dstemplate
    RESOLVE_TEMPLATE_NAMES: bool = True

    # Logging level.  Kept quiet by default: PRTG captures stderr too.
    LOG_LEVEL: str = "WARNING"

    # HTTP service (PRTG REST Custom sensor)
    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = 9100


settings = Settings()
