from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")

ELLIPSIS = "…"


def code_point_length(text: str) -> int:
    # str is a sequence of code points, unlike UTF-16 based platform clients.
    return len(text)


def chunk(items: Sequence[T], chunk_size: int) -> list[list[T]]:
    if chunk_size <= 0:
        return []
    return [list(items[i:i + chunk_size]) for i in range(0, len(items), chunk_size)]


def trim_text(text: str, max_code_points: int) -> str:
    """Abbreviate ``text`` to ``max_code_points`` with a trailing ellipsis."""
    if max_code_points < 1:
        return ""
    if len(text) <= max_code_points:
        return text
    return text[:max_code_points - 1] + ELLIPSIS


def split_text_at_whitespace(text: str, max_length: int) -> list[str]:
    """Break ``text`` into parts of at most ``max_length`` code points.

    Breaks at the last line break inside the window if there is one, else at
    the last other whitespace, else cuts hard at the limit. The whitespace at
    a break point is dropped, as is leading whitespace of every part after
    the first, so ``split_text_at_whitespace("abc de", 3)`` gives
    ``["abc", "de"]``.
    """
    if not text:
        return []
    if max_length < 1:
        raise ValueError("max_length must be positive")

    result: list[str] = []
    buffer = ""
    # Text up to (excluding) the preferred break point and the text after it.
    up_to_break = ""
    after_break = ""
    last_break_char = ""
    line_break_seen = False
    counter = 0

    for char in text:
        if counter == max_length:
            if up_to_break:
                result.append(up_to_break)
                buffer = after_break
                counter = len(buffer)
            else:
                result.append(buffer)
                buffer = ""
                after_break = ""
                counter = 0
            up_to_break = ""
            last_break_char = ""
            line_break_seen = False

        if counter == 0 and result and char.isspace():
            continue

        buffer += char
        # A later line break replaces an earlier one; other whitespace only
        # counts while no line break has been seen in this window.
        if char == "\n" or (not line_break_seen and char.isspace()):
            up_to_break += last_break_char + after_break
            after_break = ""
            last_break_char = char
            if char == "\n":
                line_break_seen = True
        else:
            after_break += char

        counter += 1

    if buffer:
        result.append(buffer)
    return result
