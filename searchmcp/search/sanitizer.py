"""
Text and URL sanitizing for search result markup.

Both helpers are pure and never raise on bad input.
"""

import re
from urllib.parse import unquote


_REDIRECT_TARGET = re.compile(r"uddg=([^&]*)")
# A tag starts with a name, a closing slash, or a declaration/comment marker
_TAG = re.compile(r"<[A-Za-z/!?][^>]*>")
_WHITESPACE = re.compile(r"\s+")

# Only these named entities are decoded; everything else is left as-is
_ENTITIES = {
    "&quot;": '"',
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&#39;": "'",
    "&apos;": "'",
    "&nbsp;": " ",
}
_ENTITY = re.compile("|".join(re.escape(entity) for entity in _ENTITIES))


def clean_url(raw: str) -> str:
    """
    Resolve a DuckDuckGo redirect link to the URL it points to.

    Redirects look like ``//duckduckgo.com/l/?uddg=https%3A%2F%2Fexample.com``.
    Protocol-relative URLs get the https scheme. Anything that cannot be
    decoded is returned unchanged.
    """
    if not isinstance(raw, str):
        return raw

    try:
        if "uddg=" in raw:
            match = _REDIRECT_TARGET.search(raw)
            if match:
                return unquote(match.group(1), errors="strict")

        if raw.startswith("//"):
            return "https:" + raw
    except (UnicodeDecodeError, ValueError):
        return raw

    return raw


def _clean_once(text: str) -> str:
    text = _TAG.sub("", text)
    text = _ENTITY.sub(lambda match: _ENTITIES[match.group(0)], text)
    return _WHITESPACE.sub(" ", text).strip()


def clean_text(raw: str) -> str:
    """
    Turn a markup fragment into display text.

    Strips tags, decodes the common named entities, collapses whitespace and
    trims. Decoding can expose new markup (``&lt;b&gt;``), so the steps are
    repeated until the text stops changing; the result is idempotent.
    """
    if not raw:
        return ""

    text = _clean_once(str(raw))
    # After the first pass every change shortens the text, so this terminates
    while True:
        cleaned = _clean_once(text)
        if cleaned == text:
            return text
        text = cleaned
