"""Configuration module for doh-relay."""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError

TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off"}

ROLES = ("worker", "edge")

logger = logging.getLogger("doh-relay")


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse a boolean token; unset or unrecognised values give the default."""
    if value is None:
        return default
    token = value.strip().lower()
    if token in TRUTHY:
        return True
    if token in FALSY:
        return False
    return default


def setup_logging(level: str = "INFO"):
    """Configure the root logger once for the process."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, built once at start-up and passed to the relays."""

    role: str = "worker"
    listen_host: str = "0.0.0.0"
    listen_port: int = 8080
    upstreams: str = ""
    upstream: str = ""
    worker_base: str = ""
    logging_enabled: bool = False
    log_level: str = "INFO"
    http_timeout: float = 10.0
    http2: bool = True
    proxy_identity: str = ""

    def __post_init__(self):
        if not self.proxy_identity:
            object.__setattr__(self, "proxy_identity", f"doh-relay-{self.role}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Raises:
            ConfigError: if a value cannot be parsed or a required one is missing
        """
        env = os.environ if environ is None else environ

        role = env.get('RELAY_ROLE', 'worker').strip().lower()
        if role not in ROLES:
            raise ConfigError(f"RELAY_ROLE must be one of {ROLES}, got {role!r}")

        try:
            listen_port = int(env.get('LISTEN_PORT', 8080))
        except ValueError:
            raise ConfigError(f"LISTEN_PORT is not an integer: {env.get('LISTEN_PORT')!r}") from None

        try:
            http_timeout = float(env.get('HTTP_TIMEOUT', 10.0))
        except ValueError:
            raise ConfigError(f"HTTP_TIMEOUT is not a number: {env.get('HTTP_TIMEOUT')!r}") from None

        worker_base = env.get('WORKER_BASE', '').strip().rstrip('/')
        if role == 'edge' and not worker_base:
            raise ConfigError("WORKER_BASE is required when RELAY_ROLE=edge")

        return cls(
            role=role,
            listen_host=env.get('LISTEN_HOST', '0.0.0.0'),
            listen_port=listen_port,
            upstreams=env.get('UPSTREAMS', ''),
            upstream=env.get('UPSTREAM', ''),
            worker_base=worker_base,
            logging_enabled=parse_bool(env.get('ENABLE_LOGGING'), False),
            log_level=env.get('LOG_LEVEL', 'INFO').upper(),
            http_timeout=http_timeout,
            http2=parse_bool(env.get('HTTP2'), True),
            proxy_identity=env.get('PROXY_IDENTITY', '').strip(),
        )

    @property
    def worker_doh_url(self) -> str:
        return f"{self.worker_base}/dns-query"

    @property
    def worker_health_url(self) -> str:
        return f"{self.worker_base}/healthz"
