"""Bounded, explicit truncation for prompt and log text."""

MAX_LOG_CHARS = 4_000


def truncate_text(value: str, max_chars: int) -> str:
    """Keep the first ``max_chars`` characters and note how many were dropped."""
    if len(value) <= max_chars:
        return value
    omitted = len(value) - max_chars
    return f"{value[:max_chars]}\n...[truncated {omitted} chars]"


def to_log_snippet(value: str, max_chars: int = MAX_LOG_CHARS) -> str:
    return truncate_text(value, max_chars)


def preview(value: str | None, max_chars: int = 160) -> str | None:
    """Single-line prefix used in log events."""
    if value is None:
        return None
    return value[:max_chars]
