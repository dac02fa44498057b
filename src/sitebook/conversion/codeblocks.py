"""Code block normalization: gutter removal and uniform line numbering."""

import logging
import re
from typing import Union

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# Dedicated line-number containers injected by highlighters
GUTTER_SELECTORS = [
    ".line-number",
    ".lineno",
    ".linenos",
    ".ln",
    ".gutter",
    ".line-numbers-rows",  # Prism
    ".hljs-ln-numbers",  # highlightjs-line-numbers
    ".rouge-gutter",  # Rouge
]

# Tables that put a number column beside the code (Pygments, Rouge)
GUTTER_TABLE_SELECTOR = "table.highlight, table.codehilitetable, table.rouge-table"

NUMBERED_CLASS = "line-numbers-simple-fixed"

MIN_NUMBERED_CHARS = 10
MIN_NUMBERED_LINES = 2

_LEADING_NUMBER = re.compile(r"^\s*\d+[\s|.\-:\t]+")


def strip_line_number(line: str) -> str:
    """Remove a leading ``12 |``, ``12.``, ``12:`` style line number."""
    return _LEADING_NUMBER.sub("", line)


def clean_code_text(text: str) -> str:
    """Strip leftover line numbers from every line of a code block."""
    return "\n".join(strip_line_number(line) for line in text.split("\n"))


def number_lines(text: str) -> str:
    """
    Prefix each line with a right-aligned, three-wide line number.

    A trailing empty line is dropped rather than numbered.
    """
    lines = text.split("\n")
    if lines and not lines[-1].strip():
        lines = lines[:-1]
    return "\n".join(f"{i:>3}  {line}" for i, line in enumerate(lines, start=1))


def remove_gutters(root: Union[BeautifulSoup, Tag]) -> None:
    """Remove vendor line-number markup, keeping the code itself."""
    for selector in GUTTER_SELECTORS:
        for el in root.select(selector):
            if not el.decomposed:
                el.decompose()

    # Prism puts .line-numbers on the <pre> itself; only drop wrappers without code
    for el in root.select(".line-numbers"):
        if el.decomposed or el.name in ("pre", "code") or el.find(["pre", "code"]):
            continue
        el.decompose()

    _unwrap_hljs_tables(root)

    for table in root.select(GUTTER_TABLE_SELECTOR):
        if table.decomposed:
            continue
        code = table.find(["pre", "code"])
        if code is None:
            continue
        table.insert_before(code.extract())
        table.decompose()


def _unwrap_hljs_tables(root: Union[BeautifulSoup, Tag]) -> None:
    """Rebuild highlightjs-line-numbers tables as a plain code element."""
    for table in root.select("table.hljs-ln"):
        lines = [cell.get_text() for cell in table.select(".hljs-ln-code")]
        if not lines:
            continue
        text = "\n".join(lines)
        if table.find_parent(["pre", "code"]) is not None:
            table.replace_with(text)
            continue
        soup = BeautifulSoup("", "html.parser")
        pre = soup.new_tag("pre")
        pre.string = text
        table.replace_with(pre)


def find_code_blocks(root: Union[BeautifulSoup, Tag]) -> list[Tag]:
    """
    Find the code blocks to number.

    ``pre code`` elements come first, then ``pre`` elements without a code
    child. A block nested in (or containing) one already found is skipped.
    """
    blocks: list[Tag] = []

    def overlaps(candidate: Tag) -> bool:
        for block in blocks:
            if block is candidate or block in candidate.parents or candidate in block.parents:
                return True
        return False

    for code in root.select("pre code"):
        if not overlaps(code):
            blocks.append(code)

    for pre in root.select("pre"):
        if pre.find("code") is None and not overlaps(pre):
            blocks.append(pre)

    return blocks


def normalize_code_blocks(root: Union[BeautifulSoup, Tag]) -> int:
    """
    Replace every code block's gutter with uniform line numbers.

    Gutter elements are removed from every block. Blocks shorter than ten
    characters or two lines are otherwise left untouched, including any
    numbers inlined in their text.

    Returns:
        Number of blocks that were numbered
    """
    remove_gutters(root)

    numbered = 0
    for block in find_code_blocks(root):
        text = clean_code_text(block.get_text())

        if len(text.strip()) < MIN_NUMBERED_CHARS or len(text.split("\n")) < MIN_NUMBERED_LINES:
            continue

        block.string = number_lines(text)
        classes = block.get("class") or []
        if NUMBERED_CLASS not in classes:
            block["class"] = [*classes, NUMBERED_CLASS]
        numbered += 1

    logger.debug(f"Numbered {numbered} code blocks")
    return numbered
