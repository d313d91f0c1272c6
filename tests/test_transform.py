"""Tests for the markdown to block-element transformer."""

import re

import pytest

from mdshelf.errors import RenderError
from mdshelf.transform import (
    BlockQuote,
    CodeBlock,
    ContentTransformer,
    ErrorBlock,
    Figure,
    Heading,
    ListBlock,
    MathBlock,
    Paragraph,
    Table,
    ThematicBreak,
    escape_code,
)


@pytest.fixture(scope="module")
def transformer() -> ContentTransformer:
    return ContentTransformer()


def _strip_tags(markup: str) -> str:
    return re.sub(r"<[^>]+>", "", markup)


def test_heading_and_paragraph(transformer: ContentTransformer) -> None:
    blocks = transformer.render("# Title *here*\n\nSome text.")

    assert blocks[0] == Heading(1, "Title <em>here</em>", "Title *here*")
    assert blocks[1] == Paragraph("Some text.")


def test_line_breaks_inside_paragraph_are_hard_breaks(transformer: ContentTransformer) -> None:
    (paragraph,) = transformer.render("first line\nsecond line")

    assert isinstance(paragraph, Paragraph)
    assert "<br" in paragraph.html


def test_autolinks_are_recognized(transformer: ContentTransformer) -> None:
    (paragraph,) = transformer.render("see https://example.com for details")

    assert '<a href="https://example.com">' in paragraph.html


def test_table_alignment_is_positional(transformer: ContentTransformer) -> None:
    """Header alignments apply to every row by column; unaligned columns get None."""
    text = "| a | b | c |\n|:--|:-:|---|\n| 1 | 2 | 3 |\n| 4 | 5 | 6 |"

    (table,) = transformer.render(text)

    assert isinstance(table, Table)
    assert table.aligns == ("left", "center", None)
    assert [cell.html for cell in table.header] == ["a", "b", "c"]
    assert [[cell.html for cell in row] for row in table.rows] == [["1", "2", "3"], ["4", "5", "6"]]
    assert [cell.align for cell in table.rows[1]] == ["left", "center", None]


def test_known_language_is_highlighted(transformer: ContentTransformer) -> None:
    (code,) = transformer.render("```python\ndef f():\n    return 1\n```")

    assert isinstance(code, CodeBlock)
    assert code.language == "python"
    assert code.highlighted is True
    assert "<span" in code.html
    assert _strip_tags(code.html) == escape_code(code.code)


def test_unknown_language_keeps_escaped_text(transformer: ContentTransformer) -> None:
    """An unrecognized tag never fails and keeps the escaped source text."""
    source = "x < y && y > z\n"

    (code,) = transformer.render(f"```no-such-language\n{source}```")

    assert code.language == "no-such-language"
    assert code.code == source
    assert _strip_tags(code.html) == "x &lt; y &amp;&amp; y &gt; z\n"


def test_highlighting_failure_falls_back_to_plain_text(
    transformer: ContentTransformer, monkeypatch: pytest.MonkeyPatch
) -> None:
    def broken_highlight(*_args, **_kwargs):
        raise RuntimeError("lexer exploded")

    monkeypatch.setattr("mdshelf.transform.highlight", broken_highlight)

    (code,) = transformer.render('```python\nprint("<b>")\n```')

    assert code.highlighted is False
    assert code.html == 'print("&lt;b&gt;")\n'


def test_image_only_paragraph_becomes_figures(transformer: ContentTransformer) -> None:
    blocks = transformer.render('![A cat](cat.png "Sleeping")\n![Dog](dog.png)')

    assert blocks == [
        Figure("cat.png", "A cat", "Sleeping", lazy=True),
        Figure("dog.png", "Dog", None, lazy=True),
    ]


def test_inline_image_renders_captioned_lazy_figure(transformer: ContentTransformer) -> None:
    (paragraph,) = transformer.render("Look: ![chart](chart.svg) above.")

    assert isinstance(paragraph, Paragraph)
    assert 'loading="lazy"' in paragraph.html
    assert "<figcaption>chart</figcaption>" in paragraph.html


def test_task_list_items_carry_checked_state(transformer: ContentTransformer) -> None:
    (task_list,) = transformer.render("- [x] done\n- [ ] todo\n")

    assert isinstance(task_list, ListBlock)
    assert [item.checked for item in task_list.items] == [True, False]


def test_ordered_list_start_and_tightness(transformer: ContentTransformer) -> None:
    (tight,) = transformer.render("3. three\n4. four\n")
    (loose,) = transformer.render("- one\n\n- two\n")

    assert tight.ordered is True
    assert tight.start == 3
    assert tight.tight is True
    assert [item.checked for item in tight.items] == [None, None]
    assert loose.tight is False


def test_nested_blockquote_and_rule(transformer: ContentTransformer) -> None:
    blocks = transformer.render("> quoted\n> > deeper\n\n---\n")

    assert isinstance(blocks[0], BlockQuote)
    assert blocks[0].children[0] == Paragraph("quoted")
    assert isinstance(blocks[0].children[1], BlockQuote)
    assert blocks[1] == ThematicBreak()


def test_math_block(transformer: ContentTransformer) -> None:
    (math,) = transformer.render("$$\na^2 + b^2\n$$\n")

    assert isinstance(math, MathBlock)
    assert math.tex == "a^2 + b^2"


def test_unparseable_input_raises_render_error(transformer: ContentTransformer) -> None:
    with pytest.raises(RenderError) as excinfo:
        transformer.render(None)  # type: ignore[arg-type]

    assert str(excinfo.value).strip()


def test_render_safely_returns_error_block(transformer: ContentTransformer) -> None:
    (block,) = transformer.render_safely(None)  # type: ignore[arg-type]

    assert isinstance(block, ErrorBlock)
    assert block.message.startswith("Error rendering markdown")
