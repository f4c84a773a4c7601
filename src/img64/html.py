"""HTML helpers used when serialising image elements."""

from __future__ import annotations

from collections.abc import Iterable
import re
from urllib.parse import quote


_DANGEROUS_PREFIXES = ("javascript:", "vbscript:", "file:", "data:")
_SAFE_DATA_IMAGES = ("data:image/png", "data:image/gif", "data:image/jpeg", "data:image/webp")

_URL_SAFE = ";/?:@&=+$,!*'()#%"
_STRAY_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")

GLOBAL_ATTRIBUTES: frozenset[str] = frozenset(
    {
        "accesskey",
        "autocapitalize",
        "autofocus",
        "class",
        "contenteditable",
        "dir",
        "draggable",
        "enterkeyhint",
        "hidden",
        "id",
        "inert",
        "inputmode",
        "is",
        "itemid",
        "itemprop",
        "itemref",
        "itemscope",
        "itemtype",
        "lang",
        "part",
        "role",
        "slot",
        "spellcheck",
        "style",
        "tabindex",
        "title",
        "translate",
    }
)

IMAGE_ATTRIBUTES: frozenset[str] = GLOBAL_ATTRIBUTES | {
    "align",
    "border",
    "crossorigin",
    "decoding",
    "height",
    "importance",
    "intrinsicsize",
    "ismap",
    "loading",
    "referrerpolicy",
    "sizes",
    "srcset",
    "usemap",
    "width",
}

# Rendered explicitly by the image renderer.
_RESERVED_ATTRIBUTES = frozenset({"src", "alt", "title"})


def is_dangerous_url(url: str) -> bool:
    """Return True for script-capable or local-file URL schemes.

    Inline data URLs are tolerated for the raster formats browsers never
    execute.
    """
    lowered = url.lstrip().lower()
    if lowered.startswith("data:image/"):
        return not lowered.startswith(_SAFE_DATA_IMAGES)
    return lowered.startswith(_DANGEROUS_PREFIXES)


def escape_html(text: str) -> str:
    """Escape the characters that are significant inside HTML attributes."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def escape_url(url: str) -> str:
    """Percent-encode a URL while keeping its existing ``%XX`` escapes."""
    return quote(_STRAY_PERCENT.sub("%25", url), safe=_URL_SAFE)


def is_image_attribute(name: str) -> bool:
    """Return True when ``name`` may be rendered on an ``<img>`` element."""
    lowered = name.lower()
    return lowered in IMAGE_ATTRIBUTES or lowered.startswith("data-")


def render_attributes(items: Iterable[tuple[str, str]]) -> str:
    """Serialise extra attributes allowed on images, in their original order."""
    parts: list[str] = []
    for name, value in items:
        if name.lower() in _RESERVED_ATTRIBUTES or not is_image_attribute(name):
            continue
        parts.append(f' {name}="{escape_html(value)}"')
    return "".join(parts)


__all__ = [
    "GLOBAL_ATTRIBUTES",
    "IMAGE_ATTRIBUTES",
    "escape_html",
    "escape_url",
    "is_dangerous_url",
    "is_image_attribute",
    "render_attributes",
]
