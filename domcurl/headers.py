"""Header map building and header echo formatting."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Union


def build_header_map(
    header_lines: Optional[Union[str, Iterable[str]]],
) -> Optional[Dict[str, str]]:
    """Turn ``Name:Value`` strings into a mapping, last duplicate wins.

    Each line is split at its first colon; the value keeps any leading
    whitespace and names keep their case. A line without a colon yields an
    empty name holding the whole line. Returns None when no lines were given.
    """
    if header_lines is None:
        return None
    if isinstance(header_lines, str):
        header_lines = [header_lines]

    headers: Dict[str, str] = {}
    for line in header_lines:
        text = str(line)
        name, sep, value = text.partition(":")
        if not sep:
            name, value = "", text
        headers[name] = value
    return headers


def has_header(headers: Optional[Mapping[str, str]], *names: str) -> bool:
    """True if any of the exact ``names`` is present in ``headers``."""
    if not headers:
        return False
    return any(name in headers for name in names)


def format_header_lines(headers: Optional[Mapping[str, str]], preamble: str) -> List[str]:
    return [f"{preamble} {name}: {value}" for name, value in (headers or {}).items()]
