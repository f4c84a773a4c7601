"""Python-Markdown extension inlining images as base64 data URLs.

The stock image processors are replaced under their standard names so the
alt content of an image is parsed into inline children instead of being
flattened early. A tree processor then visits every image, decides its
``src`` through :class:`~img64.embedder.ImageEmbedder`, and emits the final
``<img>`` markup through the raw HTML stash so attribute order is stable.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any
import xml.etree.ElementTree as ElementTree

from markdown import Markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import (
    IMAGE_LINK_RE,
    IMAGE_REFERENCE_RE,
    ImageInlineProcessor,
    ImageReferenceInlineProcessor,
    ShortImageReferenceInlineProcessor,
)
from markdown.treeprocessors import Treeprocessor

from .config import Img64Config, build_config
from .embedder import ImageEmbedder
from .html import escape_html, render_attributes


IMAGE_LINK_PRIORITY = 150
IMAGE_REFERENCE_PRIORITY = 140
SHORT_IMAGE_REFERENCE_PRIORITY = 125
# After attr_list (8) and unescape (0) so attributes and text are final.
TREEPROCESSOR_PRIORITY = -5

_STRATEGY_OPTIONS = ("path_resolver", "file_reader", "emitter", "xhtml")


def _image_element(src: str, title: str | None, text: str) -> ElementTree.Element:
    element = ElementTree.Element("img")
    element.set("src", src)
    if title is not None:
        element.set("title", title)
    # Parsed into inline children by the host's inline pass.
    element.text = text
    return element


class _ImageInlineProcessor(ImageInlineProcessor):
    """``![alt](src "title")`` keeping the alt content as inline markup."""

    def handleMatch(  # type: ignore[override]  # noqa: N802 - Markdown API requires camelCase
        self,
        m,  # noqa: ANN001
        data: str,
    ) -> tuple[ElementTree.Element | None, int | None, int | None]:
        text, index, handled = self.getText(data, m.end(0))
        if not handled:
            return None, None, None

        src, title, index, handled = self.getLink(data, index)
        if not handled:
            return None, None, None

        return _image_element(src, title, text), m.start(0), index


class _ChildAltMixin:
    def makeTag(  # noqa: N802 - Markdown API requires camelCase
        self, href: str, title: str, text: str
    ) -> ElementTree.Element:
        return _image_element(href, title or None, text)


class _ImageReferenceInlineProcessor(_ChildAltMixin, ImageReferenceInlineProcessor):
    """``![alt][ref]`` keeping the alt content as inline markup."""


class _ShortImageReferenceInlineProcessor(_ChildAltMixin, ShortImageReferenceInlineProcessor):
    """``![ref]`` keeping the alt content as inline markup."""


def _flatten(element: ElementTree.Element) -> str:
    parts = [escape_html(element.text or "")]
    for child in element:
        if child.tag == "code":
            # Already escaped by the code span processor.
            parts.append(child.text or "")
        else:
            parts.append(_flatten(child))
        parts.append(escape_html(child.tail or ""))
    return "".join(parts)


def flatten_alt_text(element: ElementTree.Element) -> str:
    """Return the escaped plain-text alternative of an image element."""
    if element.text is None and len(element) == 0:
        return escape_html(element.get("alt", ""))
    return _flatten(element)


def render_image(element: ElementTree.Element, src: str, *, xhtml: bool) -> str:
    """Serialise an image element around an already escaped ``src`` value."""
    parts = [f'<img src="{src}" alt="{flatten_alt_text(element)}"']
    title = element.get("title")
    if title is not None:
        parts.append(f' title="{escape_html(title)}"')
    parts.append(render_attributes(element.items()))
    parts.append(" />" if xhtml else ">")
    return "".join(parts)


def _iter_images(
    parent: ElementTree.Element,
) -> Iterator[tuple[ElementTree.Element, ElementTree.Element]]:
    for child in list(parent):
        if child.tag == "img":
            yield parent, child
        else:
            yield from _iter_images(child)


def _replace_with_text(
    parent: ElementTree.Element, element: ElementTree.Element, text: str
) -> None:
    index = list(parent).index(element)
    text += element.tail or ""
    if index == 0:
        parent.text = (parent.text or "") + text
    else:
        previous = parent[index - 1]
        previous.tail = (previous.tail or "") + text
    parent.remove(element)


class Img64Treeprocessor(Treeprocessor):
    """Render every image with an inlined ``src`` whenever possible."""

    def __init__(self, md: Markdown, embedder: ImageEmbedder) -> None:
        super().__init__(md)
        self.embedder = embedder

    @property
    def xhtml(self) -> bool:
        configured = self.embedder.config.xhtml
        if configured is not None:
            return configured
        return str(getattr(self.md, "output_format", "xhtml")).startswith("xhtml")

    def run(self, root: ElementTree.Element) -> None:  # type: ignore[override]
        xhtml = self.xhtml
        for parent, image in _iter_images(root):
            src = self.embedder.src_for(image.get("src", ""))
            fragment = render_image(image, src, xhtml=xhtml)
            placeholder = self.md.htmlStash.store(fragment)
            _replace_with_text(parent, image, placeholder)


class Img64Extension(Extension):
    """Register the image processors and the inlining tree processor.

    Strategy options (``path_resolver``, ``file_reader``, ``emitter``) and the
    ``xhtml`` override are kept outside Python-Markdown's config table, which
    coerces ``None`` defaults to booleans.
    """

    def __init__(self, **kwargs: Any) -> None:
        self.config = {
            "parent_path": ["", "Directory prepended to local image sources."],
            "unsafe": [False, "Embed sources flagged as dangerous URLs."],
        }
        self.overrides: dict[str, Any] = {
            key: kwargs.pop(key) for key in _STRATEGY_OPTIONS if key in kwargs
        }
        super().__init__(**kwargs)

    def build_config(self) -> Img64Config:
        """Validate the extension options into an :class:`Img64Config`."""
        options: dict[str, Any] = dict(self.overrides)
        options["unsafe"] = bool(self.getConfig("unsafe"))
        parent_path = self.getConfig("parent_path")
        if parent_path:
            options["parent_path"] = parent_path
        return build_config(**options)

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        embedder = ImageEmbedder(self.build_config())
        md.inlinePatterns.register(
            _ImageInlineProcessor(IMAGE_LINK_RE, md), "image_link", IMAGE_LINK_PRIORITY
        )
        md.inlinePatterns.register(
            _ImageReferenceInlineProcessor(IMAGE_REFERENCE_RE, md),
            "image_reference",
            IMAGE_REFERENCE_PRIORITY,
        )
        md.inlinePatterns.register(
            _ShortImageReferenceInlineProcessor(IMAGE_REFERENCE_RE, md),
            "short_image_ref",
            SHORT_IMAGE_REFERENCE_PRIORITY,
        )
        md.treeprocessors.register(
            Img64Treeprocessor(md, embedder), "img64", priority=TREEPROCESSOR_PRIORITY
        )
        md.registerExtension(self)


def makeExtension(**kwargs: Any) -> Img64Extension:  # noqa: N802 - Markdown expects this name
    return Img64Extension(**kwargs)


def convert(
    text: str,
    *,
    output_format: str = "html",
    extensions: Iterable[Any] = (),
    **options: Any,
) -> str:
    """Convert Markdown ``text`` to HTML with images inlined.

    ``options`` are forwarded to :class:`Img64Extension`; ``extensions``
    lists additional Python-Markdown extensions.
    """
    md = Markdown(
        extensions=[*extensions, Img64Extension(**options)],
        output_format=output_format,
    )
    return md.convert(text)


__all__ = [
    "Img64Extension",
    "Img64Treeprocessor",
    "convert",
    "flatten_alt_text",
    "makeExtension",
    "render_image",
]
