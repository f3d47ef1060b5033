"""Small formatting helpers for request logging.

Side effects:
    None. Helpers only build strings; callers own the logger.
"""

import json

MAX_LOG_FIELDS_LENGTH = 500


def truncate(text: str, max_len: int) -> str:
    """Cut `text` to `max_len` characters, appending `...` when shortened."""
    if len(text) > max_len:
        return text[:max_len] + "..."
    return text


def mask_secret(secret: str, show_len: int = 8) -> str:
    """Keep the first `show_len` characters of a secret and hide the rest."""
    if len(secret) <= show_len:
        return secret
    return secret[:show_len] + "..."


def log_fields(fields) -> str:
    """Render structured log fields as JSON, truncated for large payloads.

    Unserializable values fall back to their `repr` so logging never raises.
    """
    try:
        rendered = json.dumps(fields, ensure_ascii=False, default=repr)
    except (TypeError, ValueError):
        rendered = repr(fields)
    if len(rendered) > MAX_LOG_FIELDS_LENGTH:
        rendered = rendered[:MAX_LOG_FIELDS_LENGTH] + "...(truncated)"
    return rendered
