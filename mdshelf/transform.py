"""Markdown text to structured block elements."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from mdshelf.errors import RenderError

_ALIGN_RE = re.compile(r"text-align\s*:\s*(left|center|right)")


@dataclass(frozen=True)
class Heading:
    level: int
    html: str
    text: str


@dataclass(frozen=True)
class Paragraph:
    html: str


@dataclass(frozen=True)
class CodeBlock:
    code: str
    language: str | None
    html: str
    highlighted: bool


@dataclass(frozen=True)
class TableCell:
    html: str
    align: str | None = None


@dataclass(frozen=True)
class Table:
    header: tuple[TableCell, ...]
    rows: tuple[tuple[TableCell, ...], ...]
    aligns: tuple[str | None, ...]


@dataclass(frozen=True)
class Figure:
    """Image with its alt text doubling as caption."""

    src: str
    alt: str
    title: str | None = None
    lazy: bool = True


@dataclass(frozen=True)
class BlockQuote:
    children: tuple[Block, ...]


@dataclass(frozen=True)
class ListItem:
    children: tuple[Block, ...]
    # None for ordinary items, True/False for task list checkboxes.
    checked: bool | None = None


@dataclass(frozen=True)
class ListBlock:
    ordered: bool
    items: tuple[ListItem, ...]
    start: int = 1
    tight: bool = True


@dataclass(frozen=True)
class ThematicBreak:
    pass


@dataclass(frozen=True)
class HtmlBlock:
    html: str


@dataclass(frozen=True)
class MathBlock:
    tex: str
    label: str | None = None


@dataclass(frozen=True)
class ErrorBlock:
    message: str


Block = (
    Heading
    | Paragraph
    | CodeBlock
    | Table
    | Figure
    | BlockQuote
    | ListBlock
    | ThematicBreak
    | HtmlBlock
    | MathBlock
    | ErrorBlock
)


def escape_code(text: str) -> str:
    """Escape only `&`, `<` and `>` for display inside <pre>."""
    return html.escape(text, quote=False)


def figure_html(src: str, alt: str, title: str | None) -> str:
    title_attr = f' title="{html.escape(title)}"' if title else ""
    escaped_alt = html.escape(alt)
    return (
        f'<figure class="md-figure"><img src="{html.escape(src)}" alt="{escaped_alt}"{title_attr} loading="lazy">'
        f"<figcaption>{escaped_alt}</figcaption></figure>"
    )


class CodeHighlighter:
    """Pygments highlighting with graceful fallback to escaped plain text."""

    def __init__(self) -> None:
        self._formatter = HtmlFormatter(nowrap=True)

    def render(self, code: str, language: str | None) -> tuple[str, bool]:
        """Return (html, highlighted). Never raises."""
        try:
            lexer = None
            if language:
                try:
                    lexer = get_lexer_by_name(language)
                except ClassNotFound:
                    lexer = None
            if lexer is None:
                lexer = guess_lexer(code)
            return highlight(code, lexer, self._formatter), True
        except Exception:
            return escape_code(code), False


@dataclass
class _TableBuilder:
    header: list[TableCell] = field(default_factory=list)
    rows: list[list[TableCell]] = field(default_factory=list)


class ContentTransformer:
    """Parses markdown with GFM conventions and emits block elements."""

    def __init__(self) -> None:
        self.highlighter = CodeHighlighter()
        # gfm-like covers tables, strikethrough and autolinks; `breaks` turns
        # newlines inside paragraphs into hard breaks.
        self._md = MarkdownIt("gfm-like", {"breaks": True, "html": True})
        self._md.use(tasklists_plugin)
        self._md.use(dollarmath_plugin)

        def render_image(tokens, idx, options, env):
            token = tokens[idx]
            alt = self._md.renderer.renderInlineAsText(token.children or [], options, env)
            return figure_html(token.attrGet("src") or "", alt, token.attrGet("title"))

        def render_math_inline(tokens, idx, options, env):
            # Keep TeX raw for MathJax, only HTML-escape unsafe chars.
            return f'<span class="md-math">\\({html.escape(tokens[idx].content)}\\)</span>'

        def render_math_inline_double(tokens, idx, options, env):
            return f'<span class="md-math">\\[{html.escape(tokens[idx].content)}\\]</span>'

        self._md.renderer.rules["image"] = render_image
        self._md.renderer.rules["math_inline"] = render_math_inline
        self._md.renderer.rules["math_inline_double"] = render_math_inline_double

    def render(self, text: str) -> list[Block]:
        """Convert text into block elements; any failure raises RenderError."""
        try:
            env: dict = {}
            tokens = self._md.parse(text, env)
            return self._convert(tokens, 0, len(tokens), env)
        except RenderError:
            raise
        except Exception as exc:
            raise RenderError(f"Error rendering markdown: {str(exc) or type(exc).__name__}") from exc

    def render_safely(self, text: str) -> list[Block]:
        try:
            return self.render(text)
        except RenderError as exc:
            return [ErrorBlock(str(exc))]

    def _inline(self, token: Token, env: dict) -> str:
        return self._md.renderer.renderInline(token.children or [], self._md.options, env)

    def _convert(self, tokens: list[Token], start: int, end: int, env: dict) -> list[Block]:
        blocks: list[Block] = []
        index = start
        while index < end:
            token = tokens[index]
            kind = token.type
            if kind == "heading_open":
                inline = tokens[index + 1]
                blocks.append(Heading(int(token.tag[1:]), self._inline(inline, env), inline.content))
                index += 3
            elif kind == "paragraph_open":
                blocks.extend(self._paragraph(tokens[index + 1], env))
                index += 3
            elif kind in ("fence", "code_block"):
                blocks.append(self._code(token))
                index += 1
            elif kind == "table_open":
                close = _matching_close(tokens, index)
                blocks.append(self._table(tokens, index + 1, close, env))
                index = close + 1
            elif kind == "blockquote_open":
                close = _matching_close(tokens, index)
                blocks.append(BlockQuote(tuple(self._convert(tokens, index + 1, close, env))))
                index = close + 1
            elif kind in ("bullet_list_open", "ordered_list_open"):
                close = _matching_close(tokens, index)
                blocks.append(self._list(tokens, index, close, env))
                index = close + 1
            elif kind == "hr":
                blocks.append(ThematicBreak())
                index += 1
            elif kind == "html_block":
                blocks.append(HtmlBlock(token.content))
                index += 1
            elif kind.startswith("math_block"):
                blocks.append(MathBlock(token.content.strip("\n"), token.info or None))
                index += 1
            else:
                index += 1
        return blocks

    def _paragraph(self, inline: Token, env: dict) -> list[Block]:
        children = inline.children or []
        significant = [
            child
            for child in children
            if child.type not in ("softbreak", "hardbreak") and not (child.type == "text" and not child.content.strip())
        ]
        if significant and all(child.type == "image" for child in significant):
            figures: list[Block] = []
            for image in significant:
                alt = self._md.renderer.renderInlineAsText(image.children or [], self._md.options, env)
                figures.append(Figure(image.attrGet("src") or "", alt, image.attrGet("title") or None))
            return figures
        return [Paragraph(self._inline(inline, env))]

    def _code(self, token: Token) -> CodeBlock:
        info = token.info.strip() if token.type == "fence" and token.info else ""
        language = info.split(maxsplit=1)[0] if info else None
        body, highlighted = self.highlighter.render(token.content, language)
        return CodeBlock(token.content, language, body, highlighted)

    def _table(self, tokens: list[Token], start: int, end: int, env: dict) -> Table:
        builder = _TableBuilder()
        in_head = False
        row: list[TableCell] = []
        for index in range(start, end):
            token = tokens[index]
            if token.type == "thead_open":
                in_head = True
            elif token.type == "thead_close":
                in_head = False
            elif token.type == "tr_open":
                row = []
            elif token.type in ("th_open", "td_open"):
                inline = tokens[index + 1]
                html_text = self._inline(inline, env) if inline.type == "inline" else ""
                row.append(TableCell(html_text, _cell_alignment(token)))
            elif token.type == "tr_close":
                if in_head:
                    builder.header = row
                else:
                    builder.rows.append(row)

        aligns = tuple(cell.align for cell in builder.header)

        def aligned(cells: list[TableCell]) -> tuple[TableCell, ...]:
            # Alignment comes positionally from the header; extra columns stay unaligned.
            return tuple(
                TableCell(cell.html, aligns[column] if column < len(aligns) else None)
                for column, cell in enumerate(cells)
            )

        return Table(aligned(builder.header), tuple(aligned(cells) for cells in builder.rows), aligns)

    def _list(self, tokens: list[Token], start: int, end: int, env: dict) -> ListBlock:
        opener = tokens[start]
        ordered = opener.type == "ordered_list_open"
        first = 1
        if ordered:
            try:
                first = int(opener.attrGet("start") or 1)
            except (TypeError, ValueError):
                first = 1

        items: list[ListItem] = []
        tight = True
        index = start + 1
        while index < end:
            token = tokens[index]
            if token.type != "list_item_open":
                index += 1
                continue
            close = _matching_close(tokens, index)
            for inner in tokens[index + 1 : close]:
                if inner.type == "paragraph_open" and inner.level == token.level + 1 and not inner.hidden:
                    tight = False
            items.append(ListItem(tuple(self._convert(tokens, index + 1, close, env)), _task_state(tokens, index)))
            index = close + 1
        return ListBlock(ordered, tuple(items), first, tight)


def _matching_close(tokens: list[Token], start: int) -> int:
    depth = 0
    for index in range(start, len(tokens)):
        depth += tokens[index].nesting
        if depth == 0:
            return index
    raise RenderError(f"Unbalanced markdown structure at token {tokens[start].type}")


def _cell_alignment(token: Token) -> str | None:
    style = token.attrGet("style")
    if not style:
        return None
    match = _ALIGN_RE.search(str(style))
    return match.group(1) if match else None


def _task_state(tokens: list[Token], item_index: int) -> bool | None:
    css_class = str(tokens[item_index].attrGet("class") or "")
    if "task-list-item" not in css_class:
        return None
    for token in tokens[item_index + 1 :]:
        if token.type == "inline":
            for child in token.children or []:
                if child.type == "html_inline" and "task-list-item-checkbox" in child.content:
                    return 'checked="checked"' in child.content
            return False
    return False
