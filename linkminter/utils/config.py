"""Utility functions for application configuration management.

Configuration is one YAML document per environment. The file is looked up in
this order:

    1. the path in `LINKMINTER_CONFIG`, which must exist;
    2. `<project root>/config/<APP_ENV>.yaml`;
    3. built-in defaults (DEFAULT_CONFIG) when neither file exists.

The document follows this structure (every key is optional):

    active_backend: sqlite          # sqlite | redis
    link_ttl_seconds: 2592000
    sweeper:
      interval_seconds: 60
    tokens:
      strategy: random              # random | counter
      salt: change-me               # counter strategy only
    configs:
      sqlite:
        path: shorten.db
        timeout: 30
      redis:
        host: localhost
        port: 6379
        db: 0

Functions:
    app_env() -> str
        Return the current application environment (`APP_ENV`), defaulting to `'local'`.

    app_name() -> str | None
        Return the application name (`APP_NAME`), or None if not set.

    app_prefix() -> str | None
        Return the Redis key prefix `<app name>:<app env>`, or None without `APP_NAME`.

    project_root() -> Path
        Return the project root directory, using `PROJECT_ROOT` when available.

    load_config(path: str | None = None) -> dict
        Load, merge with defaults and validate the YAML configuration.

Example:
    >>> from linkminter.utils.config import load_config
    >>> config = load_config()
    >>> config['active_backend']
    'sqlite'
    >>> config['configs']['sqlite']['path']
    'shorten.db'
"""

import os
import copy
import logging
from pathlib import Path

import yaml

from linkminter.types import AppConfig
from linkminter.constants import ENV, TTL, Backend, Sweeper, TokenStrategy
from linkminter.exceptions import BadConfigurationError


logger = logging.getLogger(__name__)


DEFAULT_CONFIG: AppConfig = {
    'active_backend': Backend.SQLITE.value,
    'link_ttl_seconds': TTL.ONE_MONTH,
    'sweeper': {
        'interval_seconds': Sweeper.INTERVAL,
    },
    'tokens': {
        'strategy': TokenStrategy.RANDOM.value,
        'salt': 'default_salt',
    },
    'configs': {
        'sqlite': {
            'path': 'shorten.db',
            'timeout': 30,
        },
        'redis': {
            'host': 'localhost',
            'port': 6379,
            'db': 0,
        },
    },
}


def app_env() -> str:
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    return os.environ.get(ENV.App.APP_NAME)


def project_root() -> Path:
    return Path(os.environ.get(ENV.App.PROJECT_ROOT, os.getcwd()))


def app_prefix() -> str | None:
    return None if app_name() is None else f'{app_name()}:{app_env()}'


def _merge(defaults: dict, overrides: dict) -> dict:
    """Recursively overlay `overrides` on a copy of `defaults`."""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict:
    with path.open('r', encoding='utf-8') as f:
        try:
            document = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise BadConfigurationError(f'Configuration file {path} is not valid YAML.') from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise BadConfigurationError(f'Configuration file {path} must contain a mapping (got {type(document).__name__}).')
    return document


def _validate(config: AppConfig) -> AppConfig:
    for section in ('sweeper', 'tokens', 'configs'):
        if not isinstance(config[section], dict):
            raise BadConfigurationError(f"'{section}' must be a mapping (given value: {config[section]!r}).")

    backend = config['active_backend']
    if backend not in tuple(Backend):
        raise BadConfigurationError(f"Unknown active_backend '{backend}' (expected one of: {', '.join(Backend)}).")
    if not isinstance(config['configs'].get(backend), dict):
        raise BadConfigurationError(f"Missing 'configs.{backend}' section for the active backend.")

    strategy = config['tokens']['strategy']
    if strategy not in tuple(TokenStrategy):
        raise BadConfigurationError(f"Unknown tokens.strategy '{strategy}' (expected one of: {', '.join(TokenStrategy)}).")

    for name, value in (('link_ttl_seconds', config['link_ttl_seconds']), ('sweeper.interval_seconds', config['sweeper']['interval_seconds'])):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise BadConfigurationError(f"'{name}' must be a positive number (given value: {value!r}).")
    return config


def load_config(path: str | os.PathLike | None = None) -> AppConfig:
    """Load the application configuration

    Args:
        path (str | os.PathLike | None):
            Explicit configuration file. Defaults to `LINKMINTER_CONFIG`, then
            `<project root>/config/<APP_ENV>.yaml`.

    Returns:
        dict: the configuration document merged over DEFAULT_CONFIG.

    Raises:
        BadConfigurationError:
            If an explicitly requested file does not exist, is not a YAML mapping,
            or holds invalid values.

    Example:
        >>> os.environ['LINKMINTER_CONFIG'] = 'config/local.yaml'
        >>> load_config()['sweeper']['interval_seconds']
        60
    """
    explicit = path or os.environ.get(ENV.App.CONFIG_PATH)
    if explicit:
        config_path = Path(explicit)
        if not config_path.is_file():
            raise BadConfigurationError(f'Configuration file {config_path} does not exist.')
    else:
        config_path = project_root() / 'config' / f'{app_env()}.yaml'

    if config_path.is_file():
        logger.debug('Loading configuration file.', extra={'configPath': str(config_path)})
        document = _read_yaml(config_path)
    else:
        logger.debug('No configuration file found, using defaults.', extra={'configPath': str(config_path)})
        document = {}

    return _validate(_merge(DEFAULT_CONFIG, document))
