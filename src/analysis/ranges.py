"""Page range strings: ``{1, 2, 3, 5, 7, 8, 9}`` <-> ``"1-3,5,7-9"``.

Tokens are ascending and comma-separated; each is ``N`` or ``N-M`` with N < M.
"""

from __future__ import annotations

from collections.abc import Iterable


def format_page_ranges(pages: Iterable[int]) -> str:
    """Run-length encode page numbers. Empty input yields an empty string."""
    ordered = sorted(set(pages))
    if not ordered:
        return ""

    tokens: list[str] = []
    start = end = ordered[0]
    for page in ordered[1:]:
        if page == end + 1:
            end = page
            continue
        tokens.append(_token(start, end))
        start = end = page
    tokens.append(_token(start, end))
    return ",".join(tokens)


def parse_page_ranges(text: str) -> set[int]:
    """Inverse of format_page_ranges.

    Raises:
        ValueError: if the string does not follow the token grammar.
    """
    text = text.strip()
    if not text:
        return set()

    pages: set[int] = set()
    previous_end = 0
    for raw_token in text.split(","):
        token = raw_token.strip()
        start_text, sep, end_text = token.partition("-")
        start = _page_number(start_text, token)
        end = _page_number(end_text, token) if sep else start
        if sep and start >= end:
            raise ValueError(f"Range {token!r} must be written low-high")
        if start <= previous_end:
            raise ValueError(f"Range {token!r} is out of order")
        pages.update(range(start, end + 1))
        previous_end = end
    return pages


def _token(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"


def _page_number(text: str, token: str) -> int:
    if not text.isdigit():
        raise ValueError(f"Invalid page range token {token!r}")
    number = int(text)
    if number < 1:
        raise ValueError(f"Page numbers start at 1, got {token!r}")
    return number
