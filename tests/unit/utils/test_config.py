"""Unit tests for configuration utilities in config.py

Test coverage includes:

1. Environment variable resolution
   - Ensures app_env(), app_name(), app_prefix() correctly read environment variables.

2. Project root resolution
   - Ensures project_root() reads PROJECT_ROOT and falls back to the working directory.

3. Configuration loading behavior
   - Without any file load_config() returns the defaults.
   - `config/<APP_ENV>.yaml` under the project root is picked up and merged over defaults.
   - LINKMINTER_CONFIG and explicit paths take precedence and must exist.

4. Validation
   - Invalid YAML, non-mapping documents and bad values raise BadConfigurationError.
"""

from pathlib import Path

import pytest

from linkminter.utils import config
from linkminter.exceptions import BadConfigurationError, ConfigurationError


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture(autouse=True)
def _env(monkeypatch, tmp_path):
    """Isolate tests from the caller's environment and working directory."""
    for var in ('APP_ENV', 'APP_NAME', 'LINKMINTER_CONFIG'):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv('PROJECT_ROOT', str(tmp_path))


@pytest.fixture
def write_config(tmp_path):
    """Write a YAML document under <tmp_path>/<name> and return its path."""

    def _write(text: str, name: str = 'config/local.yaml') -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
        return path

    return _write


# -------------------------------
# 1. Environment variable resolution
# -------------------------------


def test_app_env_defaults_to_local():
    assert config.app_env() == 'local'


def test_app_env_is_lowercased(monkeypatch):
    monkeypatch.setenv('APP_ENV', 'PROD')
    assert config.app_env() == 'prod'


def test_app_prefix(monkeypatch):
    """Ensure app_prefix() combines APP_NAME and APP_ENV."""
    assert config.app_prefix() is None

    monkeypatch.setenv('APP_NAME', 'linkminter')
    monkeypatch.setenv('APP_ENV', 'dev')
    assert config.app_name() == 'linkminter'
    assert config.app_prefix() == 'linkminter:dev'


# -------------------------------
# 2. Project root resolution
# -------------------------------


def test_project_root_from_env(tmp_path):
    assert config.project_root() == tmp_path


def test_project_root_defaults_to_cwd(monkeypatch, tmp_path):
    monkeypatch.delenv('PROJECT_ROOT')
    monkeypatch.chdir(tmp_path)
    assert config.project_root() == Path.cwd()


# -------------------------------
# 3. Configuration loading behavior
# -------------------------------


def test_load_config_defaults():
    """Ensure the defaults apply when no configuration file exists."""
    app_config = config.load_config()

    assert app_config == config.DEFAULT_CONFIG
    assert app_config is not config.DEFAULT_CONFIG
    assert app_config['active_backend'] == 'sqlite'
    assert app_config['link_ttl_seconds'] == 2_592_000
    assert app_config['sweeper']['interval_seconds'] == 60


def test_load_config_from_project_root(write_config):
    """Ensure config/<APP_ENV>.yaml is merged over the defaults."""
    write_config(
        'link_ttl_seconds: 3600\n'
        'configs:\n'
        '  sqlite:\n'
        '    path: /var/lib/linkminter/links.db\n'
    )

    app_config = config.load_config()

    assert app_config['link_ttl_seconds'] == 3600
    assert app_config['configs']['sqlite'] == {'path': '/var/lib/linkminter/links.db', 'timeout': 30}
    assert app_config['configs']['redis'] == config.DEFAULT_CONFIG['configs']['redis']


def test_load_config_follows_app_env(monkeypatch, write_config):
    monkeypatch.setenv('APP_ENV', 'prod')
    write_config('active_backend: redis\n', name='config/prod.yaml')
    write_config('link_ttl_seconds: 5\n', name='config/local.yaml')

    app_config = config.load_config()

    assert app_config['active_backend'] == 'redis'
    assert app_config['link_ttl_seconds'] == 2_592_000


def test_load_config_from_env_var(monkeypatch, write_config):
    """Ensure LINKMINTER_CONFIG takes precedence over the project root."""
    write_config('link_ttl_seconds: 5\n')
    path = write_config('link_ttl_seconds: 7\n', name='elsewhere/linkminter.yaml')
    monkeypatch.setenv('LINKMINTER_CONFIG', str(path))

    assert config.load_config()['link_ttl_seconds'] == 7


def test_load_config_explicit_path(write_config):
    path = write_config('tokens:\n  strategy: counter\n  salt: s3cr3t\n', name='custom.yaml')

    app_config = config.load_config(path)

    assert app_config['tokens'] == {'strategy': 'counter', 'salt': 's3cr3t'}


def test_load_config_empty_file(write_config):
    write_config('')
    assert config.load_config() == config.DEFAULT_CONFIG


@pytest.mark.parametrize('source', ['argument', 'env'])
def test_load_config_missing_explicit_file(monkeypatch, tmp_path, source):
    """Ensure an explicitly requested file must exist."""
    missing = tmp_path / 'missing.yaml'

    with pytest.raises(BadConfigurationError, match='does not exist'):
        if source == 'env':
            monkeypatch.setenv('LINKMINTER_CONFIG', str(missing))
            config.load_config()
        else:
            config.load_config(missing)


# -------------------------------
# 4. Validation
# -------------------------------


def test_load_config_invalid_yaml(write_config):
    write_config('configs: [unterminated\n')

    with pytest.raises(BadConfigurationError, match='not valid YAML'):
        config.load_config()


def test_load_config_non_mapping(write_config):
    write_config('- sqlite\n- redis\n')

    with pytest.raises(BadConfigurationError, match='must contain a mapping'):
        config.load_config()


@pytest.mark.parametrize(
    'document, message',
    [
        ('active_backend: mongo\n', 'Unknown active_backend'),
        ('tokens:\n  strategy: uuid\n', 'Unknown tokens.strategy'),
        ('link_ttl_seconds: 0\n', 'link_ttl_seconds'),
        ('link_ttl_seconds: -60\n', 'link_ttl_seconds'),
        ('link_ttl_seconds: "30d"\n', 'link_ttl_seconds'),
        ('link_ttl_seconds: true\n', 'link_ttl_seconds'),
        ('sweeper:\n  interval_seconds: 0\n', 'sweeper.interval_seconds'),
        ('sweeper: 60\n', "'sweeper' must be a mapping"),
        ('active_backend: redis\nconfigs:\n  redis: null\n', 'configs.redis'),
    ],
)
def test_load_config_invalid_values(write_config, document, message):
    write_config(document)

    with pytest.raises(BadConfigurationError, match=message) as exc_info:
        config.load_config()

    assert isinstance(exc_info.value, ConfigurationError)
    assert exc_info.value.error_code == 'config:bad_configuration_error'
