"""Plausibility checks for the API key and commit SHA.

Both validators are pure apart from an advisory warning log and never raise.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from peqy_action.logging import get_logger

logger = get_logger(__name__)

# Keys shorter than this still pass, but trigger an advisory warning
MIN_EXPECTED_KEY_LENGTH = 32

SHORT_KEY_WARNING = f"API key seems shorter than expected (< {MIN_EXPECTED_KEY_LENGTH} characters)"

_SHA_RE = re.compile(r"[0-9a-f]{40}")


def validate_api_key(
    api_key: str | None, warn: Callable[[str], None] | None = None
) -> bool:
    """Check that an API key is present and plausibly sized.

    Args:
        api_key: Raw API key value
        warn: Optional annotation sink that also receives the short-key advisory

    Returns:
        False if the key is missing, empty or all whitespace; True otherwise.
    """
    if not api_key or not api_key.strip():
        return False

    if len(api_key) < MIN_EXPECTED_KEY_LENGTH:
        logger.warning(
            "api_key_shorter_than_expected",
            length=len(api_key),
            expected_min_length=MIN_EXPECTED_KEY_LENGTH,
        )
        if warn is not None:
            warn(SHORT_KEY_WARNING)

    return True


def validate_sha(sha: Any) -> bool:
    """Check for a full 40-character lowercase hexadecimal commit SHA."""
    if not isinstance(sha, str):
        return False
    return _SHA_RE.fullmatch(sha) is not None
