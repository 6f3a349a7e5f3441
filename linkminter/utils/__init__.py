from linkminter.utils.config import app_env, app_name, project_root, app_prefix, load_config
from linkminter.utils.shortener import (
    encode_base62,
    generate_shortcode,
    TokenGenerator,
    RandomTokenGenerator,
    SaltedCounterTokenGenerator,
)
from linkminter.utils.logging import initialize_logging


__all__ = [
    'encode_base62',
    'generate_shortcode',
    'TokenGenerator',
    'RandomTokenGenerator',
    'SaltedCounterTokenGenerator',
    'app_env',
    'app_name',
    'app_prefix',
    'project_root',
    'load_config',
    'initialize_logging',
]
