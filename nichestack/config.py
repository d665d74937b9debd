"""
Application configuration.

Settings come from config.yaml at the repository root, then environment
variables override individual keys. The resulting AppConfig is passed
explicitly to the pieces that need it (auth, database, GitHub sync).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import yaml

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG_PATH = os.path.join(ROOT_DIR, 'config.yaml')
DEFAULT_DB_PATH = os.path.join(ROOT_DIR, 'data', 'nichestack.db')


@dataclass
class AppConfig:
    db_path: str = DEFAULT_DB_PATH
    admin_password: Optional[str] = None
    github_token: Optional[str] = None
    github_sync_delay: float = 0.2  # seconds between repo calls
    locale: str = 'en'
    log_level: str = 'INFO'
    cookie_name: str = 'nichestack_auth'
    cookie_key: str = 'nichestack_auth_key'
    cookie_expiry_days: int = 7
    extra: dict = field(default_factory=dict)

    @property
    def database_url(self) -> str:
        return f'sqlite:///{self.db_path}'


ENV_OVERRIDES = {
    'NICHESTACK_DB_PATH': 'db_path',
    'ADMIN_PASSWORD': 'admin_password',
    'GITHUB_TOKEN': 'github_token',
    'GITHUB_SYNC_DELAY': 'github_sync_delay',
    'NICHESTACK_LOCALE': 'locale',
    'LOG_LEVEL': 'log_level',
}


def _read_yaml(path: str) -> dict:
    if not os.path.exists(path):
        return {}
    with open(path, 'r') as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise RuntimeError(f"{path} must contain a YAML mapping")
    return loaded


def load_config(path: Optional[str] = None, environ: Optional[dict] = None) -> AppConfig:
    """
    Build the application config.

    Args:
        path: YAML file to read (defaults to config.yaml at the repo root)
        environ: Environment mapping (defaults to os.environ)
    """
    environ = os.environ if environ is None else environ
    raw = _read_yaml(path or DEFAULT_CONFIG_PATH)

    config = AppConfig()
    known = set(AppConfig.__dataclass_fields__) - {'extra'}

    for key, value in raw.items():
        if key in known:
            setattr(config, key, value)
        else:
            config.extra[key] = value

    for env_name, attr in ENV_OVERRIDES.items():
        value = environ.get(env_name, '').strip()
        if value:
            setattr(config, attr, value)

    try:
        config.github_sync_delay = float(config.github_sync_delay)
    except (TypeError, ValueError) as exc:
        raise RuntimeError("github_sync_delay must be a number") from exc

    return config


def configure_logging(config: AppConfig):
    """Set up root logging from the configured level."""
    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
