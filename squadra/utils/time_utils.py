"""
Utility functions for the Squadra team management application.

This module contains the time helpers shared by the match clock, the ledgers
and the CSV layer.
"""
import time
from typing import Tuple


def fmt_mmss(seconds: int) -> str:
    """
    Format seconds as M:SS string.

    Minutes are not padded, seconds always use two digits.

    Args:
        seconds: Number of seconds to format

    Returns:
        Formatted time string

    Example:
        >>> fmt_mmss(125)
        '2:05'
        >>> fmt_mmss(3661)
        '61:01'
    """
    m, s = split_elapsed(seconds)
    return f"{m}:{s:02d}"


def split_elapsed(seconds: int) -> Tuple[int, int]:
    """Split accumulated seconds into a (minute, second) stamp."""
    seconds = max(0, int(seconds))
    return seconds // 60, seconds % 60


def now_ts() -> float:
    """
    Get current timestamp in epoch seconds.

    Returns:
        Current time as floating point epoch seconds
    """
    return time.time()
