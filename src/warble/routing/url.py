"""URL normalization shared by the dispatcher and modules."""

import re

_SLASH_RUN_RE = re.compile(r"/{2,}")


def normalize_url(url: str) -> str:
    """Trim and canonicalize a request path before prefix matching.

    - surrounding whitespace is stripped
    - any query string or fragment is dropped
    - backslashes become forward slashes
    - runs of slashes collapse to one
    - the result always starts with ``/``

    Case is preserved; callers lower-case when they compare.
    A trailing slash is preserved so a ``/api/`` domain still matches
    ``/api/``.

    Examples::

        normalize_url("  //api//users/5 ") -> "/api/users/5"
        normalize_url("")                     -> "/"
        normalize_url("shop?x=1")             -> "/shop"
    """
    cleaned = url.strip()
    for sep in ("?", "#"):
        cleaned = cleaned.split(sep, 1)[0]
    cleaned = cleaned.replace("\\", "/")
    cleaned = _SLASH_RUN_RE.sub("/", cleaned)
    if not cleaned.startswith("/"):
        cleaned = "/" + cleaned
    return cleaned


def strip_domain(url: str, domain: str) -> str:
    """Return the part of a normalized *url* after *domain*, rooted at ``/``.

    Assumes the caller already checked that *domain* prefixes *url*
    (case-insensitively). The prefix is measured on the lower-cased
    text, since lower-casing can change a character's length.
    """
    target = domain.lower()
    lowered = ""
    consumed = 0
    for char in url:
        if len(lowered) >= len(target):
            break
        lowered += char.lower()
        consumed += 1
    rest = url[consumed:]
    if not rest.startswith("/"):
        rest = "/" + rest
    return rest
