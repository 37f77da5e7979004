from .constants import (
    SETTINGS_FILE_NAME,
    DEFAULT_ENV_TYPE,
    RUN_ENV_TYPE_VAR,
    ENVVAR_PREFIX,
    SECTION_LOGGING,
    SECTION_DATABASE,
    SECTION_REDIS,
    REDIS_URL_SCHEME,
    POSTGRES_DRIVER_NAME,
    SENSITIVE_KEYWORDS,
)
from .types import Duration

__all__ = [
    # constants
    "SETTINGS_FILE_NAME",
    "DEFAULT_ENV_TYPE",
    "RUN_ENV_TYPE_VAR",
    "ENVVAR_PREFIX",
    "SECTION_LOGGING",
    "SECTION_DATABASE",
    "SECTION_REDIS",
    "REDIS_URL_SCHEME",
    "POSTGRES_DRIVER_NAME",
    "SENSITIVE_KEYWORDS",
    # types
    "Duration",
]
