from collections.abc import Callable
from typing import Any


# Type aliases for Python dictionaries
type AppConfig = dict[str, Any]
type BackendConfiguration = dict[str, Any]

# Zero-argument callable producing a fresh candidate token
type TokenFactory = Callable[[], str]
