# utils.py
import json
import secrets
import time
from datetime import datetime, timezone
from typing import List, Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_session_id() -> str:
    """
    32 hex chars from the OS CSPRNG. If no randomness source is available,
    falls back to a nanosecond timestamp so session creation still succeeds.
    """
    try:
        return secrets.token_hex(16)
    except NotImplementedError:
        return f"{time.time_ns():x}"


def encode_choices(choices: List[str]) -> str:
    return json.dumps(list(choices), ensure_ascii=False)


def decode_choices(raw: Optional[str]) -> Tuple[List[str], Optional[str]]:
    """
    Returns (choices, error). On a malformed payload the choices are empty
    and `error` says why; the caller decides how to report it.
    """
    try:
        data = json.loads(raw or "")
    except (TypeError, ValueError) as e:
        return [], f"choices are not valid JSON: {e}"
    if not isinstance(data, list) or not all(isinstance(c, str) for c in data):
        return [], "choices must be a JSON array of strings"
    return data, None
