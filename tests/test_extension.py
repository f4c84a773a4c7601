from __future__ import annotations

import logging
from pathlib import Path

import markdown
import pytest
import requests

from img64.diagnostics import NullEmitter
from img64.extension import Img64Extension, convert
from img64.readers import RemoteFileReader
from img64.resolvers import BaseUrlPathResolver


def test_reference_is_kept_when_the_file_is_missing(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="img64"):
        html = convert('![test](image.png "title")', parent_path=str(tmp_path))

    assert html == '<p><img src="image.png" alt="test" title="title"></p>'
    assert any("image.png" in record.getMessage() for record in caplog.records)


def test_local_image_is_inlined(image_dir: Path, png_data_url: str) -> None:
    html = convert('![test](image.png "title")', parent_path=str(image_dir))
    assert html == f'<p><img src="{png_data_url}" alt="test" title="title"></p>'


def test_custom_resolver_is_used(image_dir: Path, png_data_url: str) -> None:
    html = convert(
        "![test](image.png)",
        path_resolver=lambda source: str(image_dir / source),
    )
    assert html == f'<p><img src="{png_data_url}" alt="test"></p>'


def test_xhtml_output_closes_images(image_dir: Path, png_data_url: str) -> None:
    html = convert("![test](image.png)", parent_path=str(image_dir), output_format="xhtml")
    assert html == f'<p><img src="{png_data_url}" alt="test" /></p>'


def test_xhtml_option_overrides_output_format(tmp_path: Path) -> None:
    html = convert("![test](image.png)", parent_path=str(tmp_path), xhtml=True)
    assert html == '<p><img src="image.png" alt="test" /></p>'


def test_remote_images_are_left_alone_by_default() -> None:
    html = convert("![test](https://example.com/image.png)", emitter=NullEmitter())
    assert html == '<p><img src="https://example.com/image.png" alt="test"></p>'


def test_remote_reader_inlines_downloaded_images(
    http_root: str, png_data_url: str, local_session: requests.Session
) -> None:
    html = convert(
        f"![test]({http_root}/image.png)",
        file_reader=RemoteFileReader(local_session, timeout=5),
    )
    assert html == f'<p><img src="{png_data_url}" alt="test"></p>'


def test_remote_document_resolves_relative_images(
    http_root: str, png_data_url: str, local_session: requests.Session
) -> None:
    html = convert(
        "![test](image.png)",
        path_resolver=BaseUrlPathResolver(f"{http_root}/readme.md"),
        file_reader=RemoteFileReader(local_session, timeout=5),
    )
    assert html == f'<p><img src="{png_data_url}" alt="test"></p>'


def test_non_image_content_keeps_the_reference(
    image_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="img64"):
        html = convert("![gopher](gopher.txt)", parent_path=str(image_dir))

    assert html == '<p><img src="gopher.txt" alt="gopher"></p>'
    assert any("text/plain" in record.getMessage() for record in caplog.records)


def test_dangerous_sources_are_blanked() -> None:
    html = convert("![test](javascript:alert(1))", emitter=NullEmitter())
    assert html == '<p><img src="" alt="test"></p>'


def test_unsafe_mode_keeps_dangerous_sources() -> None:
    html = convert("![test](javascript:alert(1))", unsafe=True, emitter=NullEmitter())
    assert html == '<p><img src="javascript:alert(1)" alt="test"></p>'


def test_data_urls_are_kept(png_data_url: str) -> None:
    html = convert(f"![dot]({png_data_url})")
    assert html == f'<p><img src="{png_data_url}" alt="dot"></p>'


def test_alt_text_is_flattened(image_dir: Path, png_data_url: str) -> None:
    html = convert("![a *b* `<c>`](image.png)", parent_path=str(image_dir))
    assert html == f'<p><img src="{png_data_url}" alt="a b &lt;c&gt;"></p>'


def test_alt_and_title_are_escaped(tmp_path: Path) -> None:
    html = convert(
        '![say "hi" & bye](image.png "Tom & Jerry")',
        parent_path=str(tmp_path),
        emitter=NullEmitter(),
    )
    assert html == (
        '<p><img src="image.png" alt="say &quot;hi&quot; &amp; bye" title="Tom &amp; Jerry"></p>'
    )


def test_surrounding_text_is_preserved(image_dir: Path, png_data_url: str) -> None:
    html = convert("before ![a](image.png) after", parent_path=str(image_dir))
    assert html == f'<p>before <img src="{png_data_url}" alt="a"> after</p>'


def test_images_inside_links(image_dir: Path, png_data_url: str) -> None:
    html = convert("[![a](image.png)](https://example.com)", parent_path=str(image_dir))
    assert html == (f'<p><a href="https://example.com"><img src="{png_data_url}" alt="a"></a></p>')


def test_reference_images(image_dir: Path, png_data_url: str) -> None:
    text = '![test][logo] and ![logo]\n\n[logo]: image.png "title"\n'
    html = convert(text, parent_path=str(image_dir))
    assert html == (
        f'<p><img src="{png_data_url}" alt="test" title="title"> and '
        f'<img src="{png_data_url}" alt="logo" title="title"></p>'
    )


def test_attribute_lists_are_filtered(image_dir: Path, png_data_url: str) -> None:
    html = convert(
        '![a](image.png){: .wide width="10" onclick="steal()" data-id="7" }',
        parent_path=str(image_dir),
        extensions=["attr_list"],
    )
    assert html == (f'<p><img src="{png_data_url}" alt="a" class="wide" width="10" data-id="7"></p>')


def test_extension_loads_by_name(image_dir: Path, png_data_url: str) -> None:
    html = markdown.markdown(
        "![test](image.png)",
        extensions=["img64"],
        extension_configs={"img64": {"parent_path": str(image_dir)}},
        output_format="html",
    )
    assert html == f'<p><img src="{png_data_url}" alt="test"></p>'


def test_markdown_instance_can_be_reused(image_dir: Path, png_data_url: str) -> None:
    md = markdown.Markdown(
        extensions=[Img64Extension(parent_path=str(image_dir))],
        output_format="html",
    )
    first = md.convert("![one](image.png)")
    md.reset()
    second = md.convert("![two](image.png)")

    assert first == f'<p><img src="{png_data_url}" alt="one"></p>'
    assert second == f'<p><img src="{png_data_url}" alt="two"></p>'


def test_extension_registers_processors() -> None:
    md = markdown.Markdown(extensions=[Img64Extension()])
    assert "img64" in md.treeprocessors
    assert md.treeprocessors.get_index_for_name("img64") > md.treeprocessors.get_index_for_name(
        "inline"
    )
    for name in ("image_link", "image_reference", "short_image_ref"):
        assert name in md.inlinePatterns


def test_extension_loads_by_class_path(image_dir: Path, png_data_url: str) -> None:
    md = markdown.Markdown(
        extensions=["img64:Img64Extension"],
        extension_configs={"img64:Img64Extension": {"parent_path": str(image_dir)}},
        output_format="html",
    )
    assert md.convert("![test](image.png)") == f'<p><img src="{png_data_url}" alt="test"></p>'


def test_unopenable_path_keeps_the_reference(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="img64"):
        html = convert("![a](a\x00b.png) after")

    assert html == '<p><img src="a%00b.png" alt="a"> after</p>'
    assert any("left as a reference" in record.getMessage() for record in caplog.records)


def test_failing_reader_keeps_the_reference(caplog: pytest.LogCaptureFixture) -> None:
    class BrokenReader:
        def read(self, location: str) -> bytes | None:
            raise ValueError("boom")

    with caplog.at_level(logging.WARNING, logger="img64"):
        html = convert("![a](x.png) and text", file_reader=BrokenReader())

    assert html == '<p><img src="x.png" alt="a"> and text</p>'
    assert any("boom" in record.getMessage() for record in caplog.records)
