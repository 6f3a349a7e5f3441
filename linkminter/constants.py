from enum import StrEnum


class TTL:
    """TTL durations in seconds."""

    # Default short link lifetime, renewed on every mint (30 days in seconds)
    ONE_MONTH = 2_592_000  # 60 * 60 * 24 * 30


class Sweeper:
    """Expiry sweeper defaults."""

    INTERVAL = 60  # seconds between sweep cycles


class Container(StrEnum):
    """Names of the two containers every store backend provides."""

    URLS = 'urls'  # URL -> token
    KEYS = 'keys'  # token -> serialized link record


class Backend(StrEnum):
    SQLITE = 'sqlite'
    REDIS = 'redis'


class TokenStrategy(StrEnum):
    RANDOM = 'random'
    COUNTER = 'counter'


# Fresh candidate tokens drawn inside one mint before giving up on collisions
MAX_TOKEN_ATTEMPTS = 8

# Optimistic WATCH/EXEC rounds one Redis mint or sweep may take before failing
MAX_WATCH_ATTEMPTS = 16


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        PROJECT_ROOT = 'PROJECT_ROOT'
        LOG_LEVEL = 'LOG_LEVEL'
        CONFIG_PATH = 'LINKMINTER_CONFIG'


# Structured logging events
CORRUPT_RECORD_RESET = 'corrupt_record_reset'
CORRUPT_RECORD = 'corrupt_record'
TOKEN_MINTED = 'token_minted'
TOKEN_EXPIRED = 'token_expired'
TOKEN_NOT_FOUND = 'token_not_found'
SWEEP_SUCCESS = 'sweep_success'
SWEEP_FAILURE = 'sweep_failure'
STORE_FAILURE = 'store_failure'
