"""Helpers for handling opaque push tokens in logs."""


def shorten_token(token: str, *, visible: int = 10) -> str:
    """Return a log-safe prefix of ``token``."""

    return f"{token[:visible]}..." if len(token) > visible else token
