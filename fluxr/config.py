"""Board configuration.

Loaded from YAML with ``${VAR}`` expansion, falling back to ``FLUXR_*``
environment variables (a local ``.env`` is read first).
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

SYNC_STRATEGIES = ("local_patch", "resync_bucket")

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Z_][A-Z0-9_]*)")


@dataclass
class BoardConfig:
    """Configuration for board sync and its collaborators."""

    supabase_url: str = ""
    supabase_key: str = ""
    image_bucket: str = "screenshots"
    sync_strategy: str = "local_patch"
    versioned_writes: bool = False
    max_retries: int = 2
    retry_delay_seconds: float = 1.0
    retry_backoff: float = 2.0
    retry_max_delay_seconds: float = 5.0
    llm_model: str = "sonnet"
    llm_timeout_seconds: int = 120

    def __post_init__(self) -> None:
        if self.sync_strategy not in SYNC_STRATEGIES:
            raise ValueError(
                f"Unknown sync_strategy {self.sync_strategy!r}; "
                f"expected one of {', '.join(SYNC_STRATEGIES)}"
            )
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    def retry_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based), capped."""
        delay = self.retry_delay_seconds * (self.retry_backoff ** attempt)
        return min(delay, self.retry_max_delay_seconds)


def expand_env_vars(value: Any) -> Any:
    """Recursively expand ${VAR} / $VAR references in config values."""
    if isinstance(value, str):
        return _ENV_PATTERN.sub(
            lambda m: os.environ.get(m.group(1) or m.group(2), ""), value
        )
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(v) for v in value]
    return value


def _from_env() -> dict[str, Any]:
    data: dict[str, Any] = {}
    for f in fields(BoardConfig):
        raw = os.environ.get(f"FLUXR_{f.name.upper()}")
        if raw is None:
            continue
        if f.type == "bool":
            data[f.name] = raw.strip().lower() in ("1", "true", "yes", "on")
        elif f.type == "int":
            data[f.name] = int(raw)
        elif f.type == "float":
            data[f.name] = float(raw)
        else:
            data[f.name] = raw
    return data


def load_config(config_path: str | Path | None = None) -> BoardConfig:
    """Load config from ``config_path`` (or ``fluxr.yaml`` in cwd), then env.

    File values win over environment values. Unknown keys are ignored.
    """
    load_dotenv()
    data = _from_env()

    path = Path(config_path) if config_path else Path.cwd() / "fluxr.yaml"
    if path.exists():
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        data.update(expand_env_vars(loaded))
    elif config_path:
        raise FileNotFoundError(f"Config file not found: {path}")

    known = {f.name for f in fields(BoardConfig)}
    return BoardConfig(**{k: v for k, v in data.items() if k in known})
