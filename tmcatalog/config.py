"""Catalog settings from defaults, environment variables, a JSON config file and overrides."""

from __future__ import annotations

import json
import os
import tempfile
from typing import Any, Callable, Mapping, Optional

KEY_LOG_LEVEL = "logLevel"
KEY_CONFIG_PATH = "config"
KEY_URL_CONTEXT_ROOT = "urlContextRoot"
KEY_CORS_ALLOWED_ORIGINS = "corsAllowedOrigins"
KEY_CORS_ALLOWED_HEADERS = "corsAllowedHeaders"
KEY_CORS_ALLOW_CREDENTIALS = "corsAllowCredentials"
KEY_CORS_MAX_AGE = "corsMaxAge"
KEY_JWT_VALIDATION = "jwtValidation"
KEY_JWT_SERVICE_ID = "jwtServiceID"
KEY_JWKS_URL = "jwksURL"
ENV_PREFIX = "tmc"
LOG_LEVEL_OFF = "off"
DEFAULT_CONFIG_DIR = "~/.tm-catalog"
CONFIG_FILE_NAME = "config.json"

# keys that may be given as environment variables named TMC_<KEY>
_ENV_BOUND_KEYS = frozenset(
    k.lower()
    for k in (
        KEY_LOG_LEVEL,
        KEY_CONFIG_PATH,
        KEY_URL_CONTEXT_ROOT,
        KEY_CORS_ALLOWED_ORIGINS,
        KEY_CORS_ALLOWED_HEADERS,
        KEY_CORS_ALLOW_CREDENTIALS,
        KEY_CORS_MAX_AGE,
        KEY_JWT_VALIDATION,
        KEY_JWT_SERVICE_ID,
        KEY_JWKS_URL,
    )
)


def env_var_name(key: str) -> str:
    """Return the environment variable that can set a key, e.g. TMC_LOGLEVEL."""
    return f"{ENV_PREFIX}_{key}".upper()


def _atomic_write(path: str, data: bytes, mode: int) -> None:
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise


class Settings:
    """Looks up settings; keys are case-insensitive.

    A value set in memory wins over an environment variable, which wins over
    the config file, which wins over a default.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self._environ = os.environ if environ is None else environ
        self._defaults: dict[str, Any] = {}
        self._overrides: dict[str, Any] = {}
        self._file_values: dict[str, Any] = {}
        self._used_file = ""
        self.config_dir = ""
        self.config_file = ""
        self.set_default(KEY_LOG_LEVEL, LOG_LEVEL_OFF)
        self.set_default(KEY_JWT_VALIDATION, False)

    def get(self, key: str) -> Any:
        """Return the value of a key, or None if it has none."""
        k = key.lower()
        if k in self._overrides:
            return self._overrides[k]
        if k in _ENV_BOUND_KEYS:
            value = self._environ.get(env_var_name(k))
            if value:
                return value
        if k in self._file_values:
            return self._file_values[k]
        return self._defaults.get(k)

    def set(self, key: str, value: Any) -> None:
        """Set a value in memory only."""
        self._overrides[key.lower()] = value

    def set_default(self, key: str, value: Any) -> None:
        self._defaults[key.lower()] = value

    def use_config_file(self, path: str) -> None:
        """Read settings from this file instead of looking in the config directory."""
        self.config_file = path

    def read_in_config(self) -> None:
        """Load the config file.

        Without an explicit config file, the config directory is taken from the
        'config' setting (default ~/.tm-catalog) and a missing config.json there
        leaves only defaults. Raises ValueError if the file cannot be read as a
        JSON object.
        """
        if self.config_file:
            path = self.config_file
        else:
            self.config_dir = os.path.expanduser(self.get(KEY_CONFIG_PATH) or DEFAULT_CONFIG_DIR)
            path = os.path.join(self.config_dir, CONFIG_FILE_NAME)
            if not os.path.isfile(path):
                self._file_values = {}
                self._used_file = ""
                return
        with open(path, "rb") as f:
            content = f.read()
        try:
            loaded = json.loads(content) if content.strip() else {}
        except ValueError as exc:
            raise ValueError(f"cannot read config: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ValueError("cannot read config: not a JSON object")
        self._file_values = {k.lower(): v for k, v in loaded.items()}
        self._used_file = path

    def save(self, key: str, data: Any) -> None:
        """Set a value in memory and store it in the config file, leaving other keys as they are."""
        self.set(key, data)
        self._update_config_file(lambda j: j.__setitem__(key, data))

    def delete(self, key: str) -> None:
        """Remove a key from the config file, leaving other keys as they are."""
        self._update_config_file(lambda j: j.pop(key, None))

    def _config_dir(self) -> str:
        if not self.config_dir:
            self.config_dir = os.path.expanduser(self.get(KEY_CONFIG_PATH) or DEFAULT_CONFIG_DIR)
        return self.config_dir

    def _update_config_file(self, modify: Callable[[dict], Any]) -> None:
        config_dir = self._config_dir()
        path = self._used_file or self.config_file or os.path.join(config_dir, CONFIG_FILE_NAME)
        os.makedirs(config_dir, mode=0o770, exist_ok=True)
        try:
            with open(path, "rb") as f:
                content = f.read()
        except FileNotFoundError:
            content = b""
        if not content:
            content = b"{}"
        document = json.loads(content)
        if not isinstance(document, dict):
            raise ValueError(f"config file {path} does not hold a JSON object")
        modify(document)
        data = json.dumps(document, indent=2, sort_keys=True).encode("utf-8")
        _atomic_write(path, data, 0o660)