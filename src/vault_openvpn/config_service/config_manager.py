"""Layered configuration: defaults, config file, environment, command line."""

import logging
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "vault-openvpn.yaml"
TOKEN_FILE_NAME = ".vault-token"

LOG_LEVELS = ("debug", "info", "warning", "error")
SORT_KEYS = ("fqdn", "issuedate", "expiredate")
OUTPUT_FORMATS = ("table", "json")

# Settings key -> environment variable
ENV_VARS = {
    "vault_addr": "VAULT_ADDR",
    "vault_token": "VAULT_TOKEN",
    "tls_skip_verify": "VAULT_SKIP_VERIFY",
    "ca_cert": "VAULT_CACERT",
    "timeout": "VAULT_CLIENT_TIMEOUT",
    "pki_mountpoint": "PKI_MOUNTPOINT",
    "pki_role": "PKI_ROLE",
    "auto_revoke": "AUTO_REVOKE",
    "ttl": "TTL",
    "ovpn_key": "OVPN_KEY",
    "template_path": "TEMPLATE_PATH",
    "log_level": "LOG_LEVEL",
    "sort": "SORT",
    "format": "FORMAT",
    "list_expired": "LIST_EXPIRED",
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(d|h|m|s)")
_DURATION_UNITS = {"d": 86400, "h": 3600, "m": 60, "s": 1}


def parse_duration(value: str) -> timedelta:
    """
    Parse a Go style duration such as "8760h", "1h30m" or "90d".

    Args:
        value: Duration text

    Returns:
        Parsed duration

    Raises:
        ValueError: If the text is not a duration of at least one second
    """
    text = value.strip().lower()
    if not text:
        raise ValueError("empty duration")

    seconds = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ValueError(f"invalid duration {value!r}")
    if seconds < 1:
        raise ValueError(f"duration must be at least 1s, got {value!r}")

    return timedelta(seconds=seconds)


def format_ttl(ttl: timedelta) -> str:
    """Render a TTL the way Vault accepts it ("31536000s")."""
    return f"{int(ttl.total_seconds())}s"


class Settings(BaseModel):
    """Resolved configuration for one invocation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    vault_addr: str = Field(default="https://127.0.0.1:8200", description="Vault API address")
    vault_token: Optional[str] = Field(default=None, description="Token used against Vault")
    tls_skip_verify: bool = Field(default=False, description="Skip TLS verification of Vault")
    ca_cert: Optional[str] = Field(default=None, description="CA bundle used to verify Vault")
    timeout: int = Field(default=30, ge=1, description="Request timeout in seconds")

    pki_mountpoint: str = Field(default="/pki", description="Path the PKI engine is mounted to")
    pki_role: str = Field(default="openvpn", description="PKI role used for issuing")

    auto_revoke: bool = Field(default=True, description="Revoke older certificates for the FQDN")
    ttl: timedelta = Field(default=timedelta(hours=8760), description="TTL of issued certificates")
    ovpn_key: Optional[str] = Field(default=None, description="Secret holding an OpenVPN shared key")
    template_path: str = Field(default=".", description="Directory holding client.conf / server.conf")

    log_level: str = Field(default="info", description="Log level")
    sort: str = Field(default="fqdn", description="Sort key for list output")
    format: str = Field(default="table", description="Output format for list")
    list_expired: bool = Field(default=False, description="Also list expired certificates")

    @field_validator("ttl", mode="before")
    @classmethod
    def _parse_ttl(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return timedelta(seconds=value)
        return value

    @field_validator("ttl")
    @classmethod
    def _ttl_at_least_one_second(cls, value: timedelta) -> timedelta:
        if value.total_seconds() < 1:
            raise ValueError("ttl must be at least 1s")
        return value

    @field_validator("vault_token", "ovpn_key", "ca_cert", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.lower()
        if value == "warn":
            value = "warning"
        if value not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return value

    @field_validator("sort")
    @classmethod
    def _check_sort(cls, value: str) -> str:
        if value not in SORT_KEYS:
            raise ValueError(f"must be one of {', '.join(SORT_KEYS)}")
        return value

    @field_validator("format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if value not in OUTPUT_FORMATS:
            raise ValueError(f"must be one of {', '.join(OUTPUT_FORMATS)}")
        return value

    @property
    def mount(self) -> str:
        """Mount point without surrounding slashes."""
        return self.pki_mountpoint.strip("/")

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper())


class ConfigManager:
    """Resolves Settings from every configuration source."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None, home: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            environ: Environment to read (default: os.environ)
            home: Home directory to search for config and token files
        """
        self.environ = os.environ if environ is None else environ
        self.home = Path(home) if home is not None else Path.home()

    def find_config_file(self, explicit: Optional[str] = None) -> Optional[Path]:
        """
        Locate the YAML config file.

        An explicitly given path must exist. Otherwise ~/vault-openvpn.yaml
        and ~/.config/vault-openvpn.yaml are tried in that order.
        """
        if explicit:
            path = Path(explicit).expanduser()
            if not path.is_file():
                raise ConfigurationError(f"Config file not found: {path}")
            return path

        for candidate in (self.home / CONFIG_FILE_NAME, self.home / ".config" / CONFIG_FILE_NAME):
            if candidate.is_file():
                return candidate

        return None

    def load_config_file(self, path: Path) -> Dict[str, Any]:
        """
        Read settings from a YAML file.

        Keys may use dashes or underscores ("pki-role" or "pki_role").
        """
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Unable to read config file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")

        logger.debug(f"Using config file: {path}")
        return {str(key).replace("-", "_"): value for key, value in data.items()}

    def load_environment(self) -> Dict[str, str]:
        """Collect settings present in the environment."""
        values = {}
        for key, env_name in ENV_VARS.items():
            if env_name in self.environ:
                values[key] = self.environ[env_name]
        return values

    def read_token_file(self) -> Optional[str]:
        """
        Return the token stored in ~/.vault-token, if any.

        Raises:
            ConfigurationError: If the file exists but is not UTF-8 text
        """
        token_path = self.home / TOKEN_FILE_NAME
        try:
            token = token_path.read_text(encoding="utf-8").strip()
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"Unable to read token file {token_path}: {e}") from e
        except OSError:
            return None
        return token or None

    def load(
        self,
        overrides: Optional[Dict[str, Any]] = None,
        config_file: Optional[str] = None
    ) -> Settings:
        """
        Resolve settings.

        Precedence, highest first: overrides (command line), environment,
        config file, token file (vault_token only), built-in defaults.

        Args:
            overrides: Values given on the command line; None entries are ignored
            config_file: Explicit config file path

        Returns:
            Validated Settings

        Raises:
            ConfigurationError: If any source holds an invalid value
        """
        values: Dict[str, Any] = {}

        path = self.find_config_file(config_file)
        if path is not None:
            values.update(self.load_config_file(path))

        values.update(self.load_environment())
        values.update({k: v for k, v in (overrides or {}).items() if v is not None})

        # ~/.vault-token is only consulted when no other source names a token
        if "vault_token" not in values:
            token = self.read_token_file()
            if token:
                values["vault_token"] = token

        try:
            return Settings(**values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from e
