"""HTML page rendering of block elements for the web preview."""

from __future__ import annotations

import html

from pygments.formatters import HtmlFormatter

from mdshelf.transform import (
    Block,
    BlockQuote,
    CodeBlock,
    ErrorBlock,
    Figure,
    Heading,
    HtmlBlock,
    ListBlock,
    MathBlock,
    Paragraph,
    Table,
    TableCell,
    ThematicBreak,
    figure_html,
)

MATHJAX_CDN = "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-svg.js"

_PAGE_CSS = """
    :root {
      color-scheme: light dark;
      --fg: #1f2937;
      --bg: #f9fafb;
      --muted: #6b7280;
      --code-bg: #e5e7eb;
      --border: #d1d5db;
    }
    @media (prefers-color-scheme: dark) {
      :root {
        --fg: #e5e7eb;
        --bg: #0f0f1a;
        --muted: #9ca3af;
        --code-bg: #1e1e2e;
        --border: #374151;
      }
    }
    body {
      margin: 0 auto;
      max-width: 920px;
      padding: 28px 36px 64px;
      background: var(--bg);
      color: var(--fg);
      font-family: "Noto Sans", "DejaVu Sans", sans-serif;
      line-height: 1.6;
    }
    pre { background: var(--code-bg); padding: 12px 14px; border-radius: 6px; overflow-x: auto; }
    code { font-family: "JetBrains Mono", "DejaVu Sans Mono", monospace; }
    .code-block { position: relative; }
    .code-lang { position: absolute; top: 4px; right: 10px; font-size: 0.75rem; color: var(--muted); }
    .table-wrapper { overflow-x: auto; }
    table { border-collapse: collapse; }
    th, td { border: 1px solid var(--border); padding: 6px 12px; }
    blockquote { margin: 0; padding-left: 14px; border-left: 4px solid var(--border); color: var(--muted); }
    .md-figure img { max-width: 100%; }
    .md-figure figcaption { font-size: 0.85rem; color: var(--muted); }
    .task-list-item { list-style: none; }
    .md-render-error { color: #ef4444; white-space: pre-wrap; }
"""


class HtmlPageRenderer:
    """Turns block elements into a standalone HTML page."""

    def __init__(self, pygments_style: str = "default") -> None:
        self._code_css = HtmlFormatter(style=pygments_style).get_style_defs(".highlight")
        self._handlers = {
            Heading: self._heading,
            Paragraph: self._paragraph,
            CodeBlock: self._code,
            Table: self._table,
            Figure: self._figure,
            BlockQuote: self._blockquote,
            ListBlock: self._list,
            ThematicBreak: lambda _block: "<hr>",
            HtmlBlock: lambda block: block.html,
            MathBlock: self._math,
            ErrorBlock: self._error,
        }

    def render_blocks(self, blocks: list[Block] | tuple[Block, ...]) -> str:
        return "\n".join(self._handlers[type(block)](block) for block in blocks)

    def render_page(self, blocks: list[Block], title: str) -> str:
        body = self.render_blocks(blocks)
        needs_math = any(isinstance(block, MathBlock) for block in blocks) or "md-math" in body
        math_script = f'<script async src="{MATHJAX_CDN}"></script>' if needs_math else ""
        return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{html.escape(title)}</title>
  <style>{_PAGE_CSS}
{self._code_css}
  </style>
  {math_script}
</head>
<body>
<article class="markdown-body">
{body}
</article>
</body>
</html>
"""

    def placeholder_page(self, message: str) -> str:
        """Render an empty-state page in the preview pane, in the same colour scheme as documents."""
        return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <style>{_PAGE_CSS}
    .empty-state {{ min-height: 80vh; display: grid; place-items: center; color: var(--muted); }}
  </style>
</head>
<body><main class="empty-state">{html.escape(message)}</main></body>
</html>
"""

    def _heading(self, block: Heading) -> str:
        return f"<h{block.level}>{block.html}</h{block.level}>"

    def _paragraph(self, block: Paragraph) -> str:
        return f"<p>{block.html}</p>"

    def _code(self, block: CodeBlock) -> str:
        label = f'<span class="code-lang">{html.escape(block.language)}</span>' if block.language else ""
        lang_class = f" language-{html.escape(block.language)}" if block.language else ""
        wrapper = "highlight" if block.highlighted else "plain"
        return (
            f'<div class="code-block {wrapper}">{label}'
            f'<pre><code class="hljs{lang_class}">{block.html}</code></pre></div>'
        )

    def _cell(self, tag: str, cell: TableCell) -> str:
        style = f' style="text-align:{cell.align}"' if cell.align else ""
        return f"<{tag}{style}>{cell.html}</{tag}>"

    def _table(self, block: Table) -> str:
        head = ""
        if block.header:
            head = "<thead><tr>" + "".join(self._cell("th", cell) for cell in block.header) + "</tr></thead>"
        body = ""
        if block.rows:
            rows = "".join("<tr>" + "".join(self._cell("td", cell) for cell in row) + "</tr>" for row in block.rows)
            body = f"<tbody>{rows}</tbody>"
        return f'<div class="table-wrapper"><table>{head}{body}</table></div>'

    def _figure(self, block: Figure) -> str:
        return figure_html(block.src, block.alt, block.title)

    def _blockquote(self, block: BlockQuote) -> str:
        return f"<blockquote>{self.render_blocks(block.children)}</blockquote>"

    def _list(self, block: ListBlock) -> str:
        tag = "ol" if block.ordered else "ul"
        start = f' start="{block.start}"' if block.ordered and block.start != 1 else ""
        items = []
        for item in block.items:
            css = ' class="task-list-item"' if item.checked is not None else ""
            if block.tight:
                # Tight lists render paragraph text without <p> wrappers.
                parts = [
                    child.html if isinstance(child, Paragraph) else self.render_blocks([child])
                    for child in item.children
                ]
                inner = "\n".join(parts)
            else:
                inner = self.render_blocks(item.children)
            items.append(f"<li{css}>{inner}</li>")
        return f"<{tag}{start}>" + "".join(items) + f"</{tag}>"

    def _math(self, block: MathBlock) -> str:
        label = f' id="eq-{html.escape(block.label)}"' if block.label else ""
        return f'<div class="md-math-block"{label}>\\[{html.escape(block.tex)}\\]</div>'

    def _error(self, block: ErrorBlock) -> str:
        return f'<pre class="md-render-error">{html.escape(block.message)}</pre>'
