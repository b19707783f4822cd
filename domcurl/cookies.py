"""Cookie parsing helpers.

Turns curl-style ``-b`` values (``name=value; Path=/; Secure``) into
:class:`~domcurl.models.Cookie` records ready for the browser context.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Union

from .errors import CookieParseError
from .models import Cookie

_CORE_RE = re.compile(r"^([^=]+?)=([^;]*)(.*)$", re.DOTALL)

# Attribute keywords are matched literally and case-sensitively.
_PATH_RE = re.compile(r"; Path=([^;]+)")
_DOMAIN_RE = re.compile(r"; Domain=([^;]+)")
_SECURE_RE = re.compile(r"; Secure(?:;|$)")
_HTTP_ONLY_RE = re.compile(r"; HttpOnly(?:;|$)")
_SAME_SITE_RE = re.compile(r"; Samesite=(Lax|Strict)(?:;|$)")
_EXPIRES_RE = re.compile(r"; Expires=(\d+)(?:;|$)")


def parse_cookie_string(raw: str, url: str) -> Cookie:
    """Parse one raw cookie string.

    Without ``Domain`` the cookie is scoped to ``url``; without ``Expires``
    it is a session cookie.
    """
    match = _CORE_RE.match(str(raw or ""))
    if match is None:
        raise CookieParseError(raw)
    name, value, rest = match.group(1), match.group(2), match.group(3)

    path = _PATH_RE.search(rest)
    domain = _DOMAIN_RE.search(rest)
    same_site = _SAME_SITE_RE.search(rest)
    expires = _EXPIRES_RE.search(rest)

    return Cookie(
        name=name,
        value=value,
        domain=domain.group(1) if domain else None,
        url=None if domain else url,
        path=path.group(1) if path else None,
        secure=_SECURE_RE.search(rest) is not None,
        http_only=_HTTP_ONLY_RE.search(rest) is not None,
        same_site=same_site.group(1) if same_site else None,
        expires=int(expires.group(1)) if expires else None,
        session=expires is None,
    )


def parse_cookies(
    cookie_strings: Optional[Union[str, Iterable[str]]],
    url: str,
) -> Optional[List[Cookie]]:
    """Parse one or many raw cookie strings, one record per input.

    Returns None when no cookie input was given.
    """
    if cookie_strings is None:
        return None
    if isinstance(cookie_strings, str):
        return [parse_cookie_string(cookie_strings, url)]
    return [parse_cookie_string(raw, url) for raw in cookie_strings]
