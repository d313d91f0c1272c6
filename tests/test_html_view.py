"""Tests for the HTML page renderer."""

from mdshelf.html_view import HtmlPageRenderer
from mdshelf.transform import CodeBlock, ErrorBlock, Figure, MathBlock, Paragraph, Table, TableCell


def test_table_cells_carry_alignment_style() -> None:
    table = Table(
        header=(TableCell("a", "left"), TableCell("b")),
        rows=((TableCell("1", "left"), TableCell("2")),),
        aligns=("left", None),
    )

    markup = HtmlPageRenderer().render_blocks([table])

    assert '<th style="text-align:left">a</th><th>b</th>' in markup
    assert '<td style="text-align:left">1</td><td>2</td>' in markup


def test_code_block_has_language_label() -> None:
    block = CodeBlock("x = 1\n", "python", "x = 1\n", highlighted=False)

    markup = HtmlPageRenderer().render_blocks([block])

    assert '<span class="code-lang">python</span>' in markup
    assert 'class="hljs language-python"' in markup


def test_figure_uses_alt_as_caption() -> None:
    markup = HtmlPageRenderer().render_blocks([Figure("a.png", "Alt <text>", "T")])

    assert 'loading="lazy"' in markup
    assert "<figcaption>Alt &lt;text&gt;</figcaption>" in markup


def test_error_block_is_escaped() -> None:
    markup = HtmlPageRenderer().render_blocks([ErrorBlock("bad <input>")])

    assert "bad &lt;input&gt;" in markup


def test_page_loads_math_support_only_when_needed() -> None:
    renderer = HtmlPageRenderer()

    plain = renderer.render_page([Paragraph("hello")], "doc.md")
    with_math = renderer.render_page([MathBlock("x^2")], "doc.md")

    assert "mathjax" not in plain
    assert "mathjax" in with_math
    assert "<title>doc.md</title>" in plain


def test_placeholder_page_follows_document_colour_scheme() -> None:
    page = HtmlPageRenderer().placeholder_page("Nothing <open>")

    assert "prefers-color-scheme: dark" in page
    assert "var(--muted)" in page
    assert '<main class="empty-state">Nothing &lt;open&gt;</main>' in page
