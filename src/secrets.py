"""Utilities for loading GitHub credentials from the environment or local secrets."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from src.retrieval.errors import CredentialsError

DEFAULT_SECRETS_FILENAME = "local_secrets.json"
USERNAME_ENV = "GITHUB_USERNAME"
TOKEN_ENV = "GITHUB_TOKEN"


def _default_secrets_path() -> Path:
    root = Path(__file__).resolve().parents[1]
    return root / DEFAULT_SECRETS_FILENAME


def load_local_secrets(path: Optional[str | Path] = None) -> Dict[str, Any]:
    """Load secrets from a JSON file; return {} when unavailable or unreadable."""

    candidate = path or os.getenv("LOCAL_SECRETS_FILE") or _default_secrets_path()
    secrets_path = Path(candidate).expanduser()
    if not secrets_path.exists():
        return {}
    try:
        with secrets_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_credentials(path: Optional[str | Path] = None) -> Tuple[str, str]:
    """Return ``(username, token)``, preferring env vars over the secrets file."""

    username = os.getenv(USERNAME_ENV)
    token = os.getenv(TOKEN_ENV)
    if not (username and token):
        secrets = load_local_secrets(path)
        username = username or secrets.get("github_username")
        token = token or secrets.get("github_token")
    if not (username and token):
        raise CredentialsError(f"{USERNAME_ENV} and {TOKEN_ENV} must both be set")
    return str(username), str(token)


__all__ = ["load_local_secrets", "load_credentials", "DEFAULT_SECRETS_FILENAME"]
