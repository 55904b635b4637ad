"""Configuration helpers for the closet backend."""

from dataclasses import dataclass, fields
from pathlib import Path
import os
from typing import Dict, Optional

DEFAULT_GEMINI_MODEL = "models/gemini-1.5-flash-002"

# Config keys whose environment variable differs from the upper-cased field name.
_KEY_ALIASES = {"api_key": "google_api_key"}


@dataclass
class ClosetConfig:
    """Configuration values for the closet backend.

    Storage roots mirror the blob hierarchy the mobile client writes:
    outfits live under ``images/<owner>/<record>`` and wishlist items under
    ``images/wishlist/<owner>/<record>``.
    """

    storage_root: str = "data/blobs"
    outfit_namespace_root: str = "images"
    wishlist_namespace_root: str = "images/wishlist"
    index_db_path: Optional[str] = None
    api_key: Optional[str] = None
    model: str = DEFAULT_GEMINI_MODEL
    analysis_timeout_seconds: float = 20.0
    fetch_timeout_seconds: float = 10.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0
    environment: str | None = None

    @classmethod
    def from_env(cls) -> "ClosetConfig":
        """Build a config from environment variables over an optional config file.

        The file is ``APP_CONFIG_PATH`` when set, otherwise
        ``<CLOSET_CONFIG_DIR>/<APP_ENV>.yaml``. Each field is read from the
        upper-cased environment variable first (``GOOGLE_API_KEY`` for the API
        key), then from the file, then falls back to the dataclass default.
        Blank values count as unset.
        """

        env_name = os.getenv("APP_ENV")
        file_values = cls._load_yaml_config(cls._config_file(env_name))

        values: Dict[str, object] = {}
        for field in fields(cls):
            if field.name == "environment":
                continue
            key = _KEY_ALIASES.get(field.name, field.name)
            raw = os.getenv(key.upper(), file_values.get(key))
            if raw is None or not raw.strip():
                continue
            convert = type(field.default) if field.default is not None else str
            values[field.name] = convert(raw.strip())
        return cls(environment=env_name, **values)

    @staticmethod
    def _config_file(env_name: Optional[str]) -> Optional[Path]:
        explicit = os.getenv("APP_CONFIG_PATH")
        if explicit:
            return Path(explicit)
        if env_name:
            return Path(os.getenv("CLOSET_CONFIG_DIR", "config/environments")) / f"{env_name}.yaml"
        return None

    @staticmethod
    def _load_yaml_config(path: Optional[Path]) -> Dict[str, str]:
        """Parse flat ``key: value`` lines; comments and blank lines are skipped."""

        if path is None or not path.exists():
            return {}
        config: Dict[str, str] = {}
        for line in path.read_text().splitlines():
            key, sep, raw_value = line.strip().partition(":")
            if not sep or not key or key.startswith("#"):
                continue
            value = raw_value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            config[key.strip()] = value
        return config


__all__ = ["ClosetConfig", "DEFAULT_GEMINI_MODEL"]
