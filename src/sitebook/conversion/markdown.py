"""HTML to Markdown conversion."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Union

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

logger = logging.getLogger(__name__)


class NodeKind(Enum):
    """Rendering rule a tag is dispatched to."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "code_block"
    INLINE_CODE = "inline_code"
    LINK = "link"
    IMAGE = "image"
    STRONG = "strong"
    EMPHASIS = "emphasis"
    STRIKETHROUGH = "strikethrough"
    RULE = "rule"
    LINE_BREAK = "line_break"
    LIST = "list"
    LIST_ITEM = "list_item"
    TABLE = "table"
    TABLE_PART = "table_part"
    DROPPED = "dropped"
    CONTAINER = "container"


TAG_KINDS: dict[str, NodeKind] = {
    "h1": NodeKind.HEADING,
    "h2": NodeKind.HEADING,
    "h3": NodeKind.HEADING,
    "h4": NodeKind.HEADING,
    "h5": NodeKind.HEADING,
    "h6": NodeKind.HEADING,
    "p": NodeKind.PARAGRAPH,
    "blockquote": NodeKind.BLOCKQUOTE,
    "pre": NodeKind.CODE_BLOCK,
    "code": NodeKind.INLINE_CODE,
    "a": NodeKind.LINK,
    "img": NodeKind.IMAGE,
    "strong": NodeKind.STRONG,
    "b": NodeKind.STRONG,
    "em": NodeKind.EMPHASIS,
    "i": NodeKind.EMPHASIS,
    "del": NodeKind.STRIKETHROUGH,
    "s": NodeKind.STRIKETHROUGH,
    "strike": NodeKind.STRIKETHROUGH,
    "hr": NodeKind.RULE,
    "br": NodeKind.LINE_BREAK,
    "ul": NodeKind.LIST,
    "ol": NodeKind.LIST,
    "li": NodeKind.LIST_ITEM,
    "table": NodeKind.TABLE,
    "thead": NodeKind.TABLE_PART,
    "tbody": NodeKind.TABLE_PART,
    "tfoot": NodeKind.TABLE_PART,
    "tr": NodeKind.TABLE_PART,
    "th": NodeKind.TABLE_PART,
    "td": NodeKind.TABLE_PART,
    "script": NodeKind.DROPPED,
    "style": NodeKind.DROPPED,
    "noscript": NodeKind.DROPPED,
    "template": NodeKind.DROPPED,
    "head": NodeKind.DROPPED,
}

BLOCK_SEPARATOR = "\n\n"

_HIDDEN_STYLE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)
_LANGUAGE_CLASS = re.compile(r"^(?:language|lang)-(.+)$")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class RenderState:
    """
    Immutable state threaded down the recursive render.

    Attributes:
        list_type: "ol" or "ul" while rendering a list item, else None
        list_level: Indentation depth for list items (0 = top-level list)
        list_index: Running number of the current ordered-list item
        in_code: True inside a ``pre`` block
    """

    list_type: Optional[str] = None
    list_level: int = 0
    list_index: int = 0
    in_code: bool = False


def _is_hidden(tag: Tag) -> bool:
    style = tag.get("style")
    return isinstance(style, str) and bool(_HIDDEN_STYLE.search(style))


def _wrap(content: str, token: str) -> str:
    """Wrap inline content in a token, keeping outer whitespace outside it."""
    stripped = content.strip()
    if not stripped:
        return content
    leading = content[: len(content) - len(content.lstrip())]
    trailing = content[len(content.rstrip()) :]
    return f"{leading}{token}{stripped}{token}{trailing}"


def _code_language(tag: Tag) -> str:
    candidates = [tag]
    code = tag.find("code")
    if isinstance(code, Tag):
        candidates.append(code)
    for candidate in candidates:
        for cls in candidate.get("class") or []:
            match = _LANGUAGE_CLASS.match(cls)
            if match:
                return match.group(1)
    return ""


class HtmlToMarkdown:
    """
    Converts sanitized HTML content to Markdown.

    A recursive renderer with one rule per node kind; tags are mapped to a
    ``NodeKind`` and dispatched through a lookup table. Unknown tags are
    transparent.

    Example:
        converter = HtmlToMarkdown()
        markdown = converter.convert("<h3>Title</h3><p>Body</p>")
    """

    def __init__(self) -> None:
        self._handlers: dict[NodeKind, Callable[[Tag, RenderState], str]] = {
            NodeKind.HEADING: self._render_heading,
            NodeKind.PARAGRAPH: self._render_paragraph,
            NodeKind.BLOCKQUOTE: self._render_blockquote,
            NodeKind.CODE_BLOCK: self._render_code_block,
            NodeKind.INLINE_CODE: self._render_inline_code,
            NodeKind.LINK: self._render_link,
            NodeKind.IMAGE: self._render_image,
            NodeKind.STRONG: lambda tag, state: _wrap(self._render_children(tag, state), "**"),
            NodeKind.EMPHASIS: lambda tag, state: _wrap(self._render_children(tag, state), "*"),
            NodeKind.STRIKETHROUGH: lambda tag, state: _wrap(self._render_children(tag, state), "~~"),
            NodeKind.RULE: lambda tag, state: f"{BLOCK_SEPARATOR}---{BLOCK_SEPARATOR}",
            NodeKind.LINE_BREAK: lambda tag, state: "  \n",
            NodeKind.LIST: self._render_list,
            NodeKind.LIST_ITEM: self._render_list_item,
            NodeKind.TABLE: self._render_table,
            NodeKind.TABLE_PART: lambda tag, state: self._render_children(tag, state) + " ",
            NodeKind.DROPPED: lambda tag, state: "",
            NodeKind.CONTAINER: self._render_children,
        }

    def _render(self, node: PageElement, state: RenderState) -> str:
        if isinstance(node, PreformattedString):
            # Comments, doctypes, CDATA and processing instructions
            return ""
        if isinstance(node, NavigableString):
            text = str(node)
            if state.in_code:
                return text
            return _WHITESPACE.sub(" ", text)
        if not isinstance(node, Tag) or _is_hidden(node):
            return ""

        kind = TAG_KINDS.get(node.name, NodeKind.CONTAINER)
        return self._handlers[kind](node, state)

    def _render_children(self, tag: Tag, state: RenderState) -> str:
        return "".join(self._render(child, state) for child in tag.children)

    def _render_heading(self, tag: Tag, state: RenderState) -> str:
        level = int(tag.name[1])
        text = _WHITESPACE.sub(" ", self._render_children(tag, state)).strip()
        if not text:
            return ""
        return f"{BLOCK_SEPARATOR}{'#' * level} {text}{BLOCK_SEPARATOR}"

    def _render_paragraph(self, tag: Tag, state: RenderState) -> str:
        text = self._render_children(tag, state).strip()
        if not text:
            return ""
        return f"{BLOCK_SEPARATOR}{text}{BLOCK_SEPARATOR}"

    def _render_blockquote(self, tag: Tag, state: RenderState) -> str:
        text = collapse_blank_lines(self._render_children(tag, state)).strip()
        if not text:
            return ""
        quoted = "\n".join(f"> {line}".rstrip() for line in text.split("\n"))
        return f"{BLOCK_SEPARATOR}{quoted}{BLOCK_SEPARATOR}"

    def _render_code_block(self, tag: Tag, state: RenderState) -> str:
        code = self._render_children(tag, replace(state, in_code=True)).strip("\n").rstrip()
        fence = "```"
        while fence in code:
            fence += "`"
        return f"{BLOCK_SEPARATOR}{fence}{_code_language(tag)}\n{code}\n{fence}{BLOCK_SEPARATOR}"

    def _render_inline_code(self, tag: Tag, state: RenderState) -> str:
        if state.in_code:
            return self._render_children(tag, state)
        code = tag.get_text().strip()
        if not code:
            return ""
        fence = "``" if "`" in code else "`"
        return f"{fence}{code}{fence}"

    def _render_link(self, tag: Tag, state: RenderState) -> str:
        text = self._render_children(tag, state).strip()
        href = tag.get("href")
        if not text:
            return ""
        if not isinstance(href, str) or not href.strip():
            return text
        return f"[{text}]({href.strip()})"

    def _render_image(self, tag: Tag, state: RenderState) -> str:
        src = tag.get("src") or tag.get("data-src")
        if not isinstance(src, str) or not src.strip():
            return ""
        alt = tag.get("alt")
        alt = alt.strip() if isinstance(alt, str) else ""
        return f"![{alt}]({src.strip()})"

    def _render_list(self, tag: Tag, state: RenderState) -> str:
        list_type = "ol" if tag.name == "ol" else "ul"
        try:
            index = int(str(tag.get("start", "1")))
        except ValueError:
            index = 1

        items: list[str] = []
        for child in tag.children:
            if isinstance(child, Tag) and child.name == "li":
                item_state = replace(state, list_type=list_type, list_index=index)
                items.append(self._render_list_item(child, item_state))
                index += 1
            else:
                stray = self._render(child, state).strip()
                if stray:
                    items.append(f"{'  ' * state.list_level}{stray}\n")

        rendered = "".join(items)
        if state.list_level == 0:
            # Top-level lists are separate blocks; nested ones continue their item
            return f"\n{rendered}\n"
        return rendered

    def _render_list_item(self, tag: Tag, state: RenderState) -> str:
        indent = "  " * state.list_level
        marker = f"{state.list_index}. " if state.list_type == "ol" else "* "
        child_state = RenderState(list_level=state.list_level + 1, in_code=state.in_code)

        inline: list[str] = []
        nested: list[str] = []
        for child in tag.children:
            if isinstance(child, Tag) and child.name in ("ul", "ol") and not _is_hidden(child):
                nested.append(self._render(child, child_state))
            else:
                inline.append(self._render(child, child_state))

        text = re.sub(r"\n{2,}", "\n", "".join(inline).strip())
        lines = text.split("\n")
        continuation = indent + " " * len(marker)
        body = lines[0]
        for line in lines[1:]:
            body += "\n" + (continuation + line if line.strip() else "")

        return f"{indent}{marker}{body}\n" + "".join(nested)

    def _render_table(self, tag: Tag, state: RenderState) -> str:
        rows = [tr for tr in tag.find_all("tr") if tr.find_parent("table") is tag]
        if not rows:
            return self._render_children(tag, state)

        cell_state = RenderState(in_code=state.in_code)
        grid: list[list[str]] = []
        for row in rows:
            cells = row.find_all(["th", "td"], recursive=False)
            grid.append([self._render_cell(cell, cell_state) for cell in cells])

        width = max(len(row) for row in grid)
        if width == 0:
            return ""
        for row in grid:
            row.extend([""] * (width - len(row)))

        lines = [_table_line(grid[0]), _table_line(["---"] * width)]
        lines.extend(_table_line(row) for row in grid[1:])
        return BLOCK_SEPARATOR + "\n".join(lines) + BLOCK_SEPARATOR

    def _render_cell(self, cell: Tag, state: RenderState) -> str:
        text = _WHITESPACE.sub(" ", self._render_children(cell, state)).strip()
        return text.replace("|", "\\|")

    def _clean_output(self, markdown: str) -> str:
        """Collapse runs of blank lines outside code fences."""
        markdown = collapse_blank_lines(markdown)
        return markdown.strip() + "\n" if markdown.strip() else ""

    def convert(self, html: Union[str, BeautifulSoup, Tag], url: Optional[str] = None) -> str:
        """
        Convert HTML to Markdown.

        Never raises; on an internal failure the plain text of the input is
        returned instead.

        Args:
            html: HTML content string (or an already parsed tree)
            url: Source URL, used only for log messages

        Returns:
            Markdown string
        """
        if isinstance(html, str):
            if not html.strip():
                return ""
            soup: Union[BeautifulSoup, Tag] = BeautifulSoup(html, "html.parser")
        else:
            soup = html

        try:
            markdown = self._render_children(soup, RenderState())
            return self._clean_output(markdown)
        except Exception as e:
            logger.error(f"Failed to convert HTML to Markdown{f' for {url}' if url else ''}: {e}")
            # Return plain text as fallback
            text: str = soup.get_text(separator="\n")
            return text.strip() + "\n"


def _table_line(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def collapse_blank_lines(markdown: str) -> str:
    """
    Keep at most one blank line between blocks, outside code fences.

    Whitespace-only lines count as blank, and the single leading space left
    by whitespace collapsing is dropped.
    """
    out: list[str] = []
    in_fence = False
    blank_run = 0

    for line in markdown.split("\n"):
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
            blank_run = 0
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        if not line.strip():
            blank_run += 1
            if blank_run == 1:
                out.append("")
            continue
        blank_run = 0
        if line.startswith(" ") and not line.startswith("  "):
            line = line[1:]
        out.append(line)

    return "\n".join(out)
