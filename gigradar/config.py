from pathlib import Path
import os
from typing import Any, Union

import yaml

DEFAULT_BATCH_SIZE = 8
DEFAULT_MODEL = "claude-sonnet-4-5"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_CLASSIFIER_TIMEOUT = 120.0


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def batch_size() -> int:
    return max(1, _int_env("GIGRADAR_BATCH_SIZE", DEFAULT_BATCH_SIZE))


def classifier_model() -> str:
    return os.getenv("GIGRADAR_MODEL", DEFAULT_MODEL)


def classifier_max_tokens() -> int:
    return _int_env("GIGRADAR_MAX_TOKENS", DEFAULT_MAX_TOKENS)


def classifier_timeout() -> float:
    return float(os.getenv("GIGRADAR_CLASSIFIER_TIMEOUT", DEFAULT_CLASSIFIER_TIMEOUT))


def admin_token() -> str:
    return os.getenv("GIGRADAR_ADMIN_TOKEN", "")


def load_paste(path: Union[str, Path]) -> str:
    path = Path(path)
    with path.open(encoding='utf-8') as f:
        return f.read()


def load_profile(path: Union[str, Path, None] = None) -> dict[str, Any]:
    """Freelancer profile (stack, rates, preferences) for the classifier prompt."""
    path = path or os.getenv("GIGRADAR_PROFILE")
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"profile {path} must be a mapping, got {type(data).__name__}")
    return data
