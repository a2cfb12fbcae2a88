"""
Helpers shared by the SQL and Redis connection managers.
"""

import json
import warnings
from typing import Any, Dict, Iterable, Optional

# Placeholder written in place of secrets before anything is logged
REDACTED = "XxXxXxXxXx"


def pick_params(
    params: Optional[Dict[str, Any]],
    keys: Iterable[str],
    aliases: Optional[Dict[str, Dict[str, str]]] = None,
) -> Dict[str, Any]:
    """
    Copy recognized, non-empty keys from a connection map.

    Args:
        params: Caller-supplied connection map
        keys: Recognized keys, in the order they should be kept
        aliases: Optional per-key value normalization, e.g.
            ``{"dbtype": {"postgresql": "pgsql"}}``

    Returns:
        New dictionary holding only recognized keys
    """
    aliases = aliases or {}
    picked: Dict[str, Any] = {}
    if not params:
        return picked
    for key in keys:
        value = params.get(key)
        if value is None:
            continue
        picked[key] = aliases.get(key, {}).get(value, value)
    return picked


def redact_params(params: Optional[Dict[str, Any]], secret_key: str) -> Optional[Dict[str, Any]]:
    """Return a copy of ``params`` with ``secret_key`` masked."""
    if params is None:
        return None
    safe = dict(params)
    if safe.get(secret_key) is not None:
        safe[secret_key] = REDACTED
    return safe


def dump_params(params: Optional[Dict[str, Any]]) -> str:
    """JSON text of a (redacted) parameter map for log lines."""
    return json.dumps(params, default=str)


def log_safely(logger, level: str, message: str) -> None:
    """
    Log through an injected logger that may itself fail.

    A failing logger is reported as a ``RuntimeWarning`` so it never
    replaces the error or result of the operation being logged.

    Args:
        logger: Anything with ``debug``, ``info``, ``warning`` and ``error``
        level: Method name to call
        message: Log line
    """
    try:
        getattr(logger, level)(message)
    except Exception as e:
        warnings.warn(f"storelink: logger failed: {e!r}", RuntimeWarning, stacklevel=3)
