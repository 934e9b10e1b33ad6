"""
Move extraction from free-text model output.

Models answer in prose, markdown or a bare move. The extractor trusts explicit
markers before loose text scanning and never returns a token that is not in the
legal move list (except the resignation sentinel).
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

RESIGN = "RESIGN"

MOVE_MARKER_REGEX = re.compile(r"^[ \t]*MOVE:[ \t]*(.+?)[ \t]*$", re.IGNORECASE | re.MULTILINE)
RESIGN_MARKER_REGEX = re.compile(r"^[ \t]*MOVE:[ \t]*RESIGN[ \t]*$", re.IGNORECASE | re.MULTILINE)
BOLD_REGEX = re.compile(r"\*\*([A-Za-z0-9+#=x\-]+)\*\*")
CODE_SPAN_REGEX = re.compile(r"`([A-Za-z0-9+#=x\-]+)`")


def extract_move(text: Optional[str], legal_moves: Sequence[str]) -> Optional[str]:
    """
    Extract a move from model output.

    Resolution order, first match wins:
    1. a "MOVE: RESIGN" line (any case)
    2. a line that is exactly "RESIGN" (upper case only)
    3. a "MOVE: <move>" line naming a legal move (the last such line)
    4. the last non-empty line, if it is a legal move
    5. a **bold** or `code` token that is a legal move
    6. a legal move standing alone as a word, longest moves tried first

    Args:
        text: Raw model output
        legal_moves: Legal moves in SAN

    Returns:
        A legal move, RESIGN, or None if nothing usable was found
    """
    if not text:
        return None
    text = text.replace("\r\n", "\n")

    if RESIGN_MARKER_REGEX.search(text):
        return RESIGN

    lines = [line.strip() for line in text.splitlines()]
    if any(line == RESIGN for line in lines):
        return RESIGN

    if not legal_moves:
        return None
    legal_set = set(legal_moves)

    marked = [m.group(1) for m in MOVE_MARKER_REGEX.finditer(text) if m.group(1) in legal_set]
    if marked:
        return marked[-1]

    non_empty = [line for line in lines if line]
    if non_empty and non_empty[-1] in legal_set:
        return non_empty[-1]

    for regex in (BOLD_REGEX, CODE_SPAN_REGEX):
        for match in regex.finditer(text):
            if match.group(1) in legal_set:
                return match.group(1)

    for move in _longest_first(legal_moves):
        if _bounded_move_regex(move).search(text):
            return move

    return None


def _longest_first(legal_moves: Sequence[str]) -> List[str]:
    # Stable sort keeps generation order among moves of equal length
    return sorted(legal_moves, key=len, reverse=True)


def _bounded_move_regex(move: str) -> re.Pattern:
    return re.compile(rf"(?:^|[\s(]){re.escape(move)}(?=[\s).,;!?]|$)", re.MULTILINE)
