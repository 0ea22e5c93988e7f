# =============================================================================
# medcore/config/settings.py
# Application Settings
# =============================================================================
"""
Settings are resolved in this order (first wins):

1. keyword overrides passed to load_settings()
2. .streamlit/secrets.toml
3. environment variables (a local .env file is loaded first)

Expected secrets.toml format:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [openai]
    api_key = "sk-..."
    model = "gpt-4o-mini"

    [medcore]
    db_path = "local_data/medcore.db"
    notification_ttl = 3.0
    history_limit = 20
"""

from __future__ import annotations
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional
import logging

import toml
from dotenv import load_dotenv

from medcore.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SECRETS_PATH = Path(".streamlit") / "secrets.toml"


@dataclass
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    db_path: Path = Path("local_data") / "medcore.db"
    notification_ttl: float = 3.0
    history_limit: int = 20
    monitor_connectivity: bool = True

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


# (secrets section, secrets key, env var) per setting
_SOURCES = {
    "supabase_url": ("supabase", "url", "SUPABASE_URL"),
    "supabase_key": ("supabase", "key", "SUPABASE_KEY"),
    "openai_api_key": ("openai", "api_key", "OPENAI_API_KEY"),
    "openai_model": ("openai", "model", "OPENAI_MODEL"),
    "db_path": ("medcore", "db_path", "MEDCORE_DB_PATH"),
    "notification_ttl": ("medcore", "notification_ttl", "MEDCORE_NOTIFICATION_TTL"),
    "history_limit": ("medcore", "history_limit", "MEDCORE_HISTORY_LIMIT"),
    "monitor_connectivity": ("medcore", "monitor_connectivity", "MEDCORE_MONITOR_CONNECTIVITY"),
}


def _load_secrets(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        return toml.load(path)
    except (toml.TomlDecodeError, OSError) as e:
        logger.warning(f"Ignoring unreadable secrets file {path}: {e}")
        return {}


def _coerce(name: str, value: Any) -> Any:
    if name == "db_path":
        return Path(value)
    if name == "notification_ttl":
        return float(value)
    if name == "history_limit":
        return int(value)
    if name == "monitor_connectivity" and isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return value


def load_settings(
    secrets_path: Optional[Path] = None,
    use_env: bool = True,
    **overrides: Any,
) -> Settings:
    """
    Build Settings from overrides, secrets.toml and the environment.

    Raises:
        ConfigurationError: if a value cannot be converted to its type
    """
    if use_env:
        load_dotenv()

    secrets = _load_secrets(Path(secrets_path) if secrets_path else DEFAULT_SECRETS_PATH)
    valid = {f.name for f in fields(Settings)}
    unknown = set(overrides) - valid
    if unknown:
        raise ConfigurationError(f"Unknown settings: {sorted(unknown)}")

    values: Dict[str, Any] = {}
    for name, (section, key, env_var) in _SOURCES.items():
        if name in overrides:
            raw = overrides[name]
        elif key in secrets.get(section, {}):
            raw = secrets[section][key]
        elif use_env and os.getenv(env_var) is not None:
            raw = os.getenv(env_var)
        else:
            continue

        try:
            values[name] = _coerce(name, raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid value for {name}: {raw!r}",
                config_key=name,
            ) from e

    settings = Settings(**values)
    if not settings.has_supabase:
        logger.info("Supabase not configured; running in local-only mode")
    return settings
