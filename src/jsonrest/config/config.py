import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

import yaml

DEFAULT_RETRY_MAX_ATTEMPTS = 1
DEFAULT_RETRY_DELAY = 2.0

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class ConfigurationError(Exception):
    """Raised when client configuration is missing or invalid."""

    pass


@dataclass
class ClientConfig:
    """Settings for one Client.

    Durations are in seconds. A timeout of 0 means requests never time out.
    """

    retry_max_attempts: int = DEFAULT_RETRY_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    timeout: float = 0.0
    verify_tls: bool = True
    log_enabled: bool = False

    def validate(self) -> "ClientConfig":
        """Check value ranges.

        Returns:
            The same config, to allow chaining.

        Raises:
            ConfigurationError: If a value is out of range.
        """
        if isinstance(self.retry_max_attempts, bool) or not isinstance(self.retry_max_attempts, int):
            raise ConfigurationError(f"retry_max_attempts must be an integer, got {self.retry_max_attempts!r}")
        if self.retry_max_attempts < 1:
            raise ConfigurationError(f"retry_max_attempts must be at least 1, got {self.retry_max_attempts}")
        if self.retry_delay < 0:
            raise ConfigurationError(f"retry_delay must not be negative, got {self.retry_delay}")
        if self.timeout < 0:
            raise ConfigurationError(f"timeout must not be negative, got {self.timeout}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _parse_bool(name: str, raw: Any) -> bool:
    """Parse a boolean from an env string or a YAML scalar."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        value = raw.strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_number(name: str, raw: Any, kind: type) -> Any:
    """Parse an int or float from an env string or a YAML scalar."""
    if isinstance(raw, bool):
        raise ConfigurationError(f"{name} must be a {kind.__name__}, got {raw!r}")
    if isinstance(raw, (int, float)):
        if kind is int and not float(raw).is_integer():
            raise ConfigurationError(f"{name} must be a {kind.__name__}, got {raw!r}")
        return kind(raw)
    if isinstance(raw, str):
        try:
            return kind(raw.strip())
        except ValueError as e:
            raise ConfigurationError(f"{name} must be a {kind.__name__}, got {raw!r}") from e
    raise ConfigurationError(f"{name} must be a {kind.__name__}, got {raw!r}")


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(ClientConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys in {path}: {', '.join(unknown)}")
    return data


def load_config(path: Optional[str] = None) -> ClientConfig:
    """Load client configuration from defaults, an optional YAML file and the environment.

    Later sources win: ``defaults.yaml`` next to this module, then ``path``
    (or ``JSONREST_CONFIG_FILE``), then the ``JSONREST_*`` variables.

    Args:
        path: Optional YAML file overriding the defaults.

    Returns:
        A validated ClientConfig instance.

    Raises:
        ConfigurationError: If a value is malformed or out of range.
        FileNotFoundError: If the YAML file does not exist.
        yaml.YAMLError: If the YAML file contains invalid syntax.
    """
    config_dir = os.path.dirname(__file__)
    values = _read_yaml(os.path.join(config_dir, "defaults.yaml"))

    path = path or os.getenv("JSONREST_CONFIG_FILE", "").strip() or None
    if path:
        values.update(_read_yaml(path))

    env = {
        "retry_max_attempts": os.getenv("JSONREST_RETRY_MAX_ATTEMPTS", "").strip(),
        "retry_delay": os.getenv("JSONREST_RETRY_DELAY", "").strip(),
        "timeout": os.getenv("JSONREST_TIMEOUT", "").strip(),
        "verify_tls": os.getenv("JSONREST_VERIFY_TLS", "").strip(),
        "log_enabled": os.getenv("JSONREST_LOG_ENABLED", "").strip(),
    }
    if env["retry_max_attempts"]:
        values["retry_max_attempts"] = _parse_number("JSONREST_RETRY_MAX_ATTEMPTS", env["retry_max_attempts"], int)
    if env["retry_delay"]:
        values["retry_delay"] = _parse_number("JSONREST_RETRY_DELAY", env["retry_delay"], float)
    if env["timeout"]:
        values["timeout"] = _parse_number("JSONREST_TIMEOUT", env["timeout"], float)
    if env["verify_tls"]:
        values["verify_tls"] = _parse_bool("JSONREST_VERIFY_TLS", env["verify_tls"])
    if env["log_enabled"]:
        values["log_enabled"] = _parse_bool("JSONREST_LOG_ENABLED", env["log_enabled"])

    return ClientConfig(
        retry_max_attempts=_parse_number("retry_max_attempts", values["retry_max_attempts"], int),
        retry_delay=_parse_number("retry_delay", values["retry_delay"], float),
        timeout=_parse_number("timeout", values["timeout"], float),
        verify_tls=_parse_bool("verify_tls", values["verify_tls"]),
        log_enabled=_parse_bool("log_enabled", values["log_enabled"]),
    ).validate()
