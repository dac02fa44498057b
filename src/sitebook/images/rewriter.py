"""Rewriting of image URLs in assembled documents."""

import html
import logging
import re
from typing import Optional

from ..conversion.markdown import collapse_blank_lines
from ..models.document import FailedImageRecord, ImageRecord

logger = logging.getLogger(__name__)

WARNING_PREFIX = "> **Warning: image failed to download:**"


def markdown_warning(failure: FailedImageRecord) -> str:
    """Inline Markdown warning block for a failed image."""
    return f"{WARNING_PREFIX} {failure.error_reason}\n> Original link: <{failure.url}>"


def html_warning(failure: FailedImageRecord) -> str:
    """Inline HTML warning block for a failed image."""
    reason = html.escape(failure.error_reason)
    url = html.escape(failure.url)
    return (
        '<div class="image-warning">'
        f"<strong>Image failed to download:</strong> {reason}<br>"
        f'Original link: <a href="{url}">{url}</a>'
        "</div>"
    )


def _image_token_pattern(url: str) -> "re.Pattern[str]":
    return re.compile(r"!\[[^\]\n]*\]\(" + re.escape(url) + r"\)")


def _replace_urls(text: str, targets: dict[str, Optional[str]]) -> str:
    """
    Replace URLs in one pass, longest first.

    A target mapped to None is kept as is, so a failed URL is never
    rewritten by a downloaded URL that is a prefix of it.
    """
    if not targets:
        return text
    pattern = re.compile("|".join(re.escape(url) for url in sorted(targets, key=len, reverse=True)))

    def replace(match: "re.Match[str]") -> str:
        local = targets[match.group(0)]
        return match.group(0) if local is None else local

    return pattern.sub(replace, text)


def rewrite_markdown(
    markdown: str,
    images: dict[str, ImageRecord],
    failed: list[FailedImageRecord],
) -> str:
    """
    Point image references in Markdown at their local copies.

    Every image token of a failed URL is preceded by a warning block and
    keeps its original link. Every occurrence of a downloaded URL is
    replaced with ``./images/<filename>``. Longer URLs win, so a URL that
    prefixes another one, downloaded or failed, is never replaced inside it.
    """
    for failure in sorted(failed, key=lambda f: len(f.url), reverse=True):
        warning = markdown_warning(failure)
        markdown = _image_token_pattern(failure.url).sub(
            lambda m, warning=warning: f"\n\n{warning}\n\n{m.group(0)}\n\n",
            markdown,
        )

    targets: dict[str, Optional[str]] = {failure.url: None for failure in failed}
    targets.update((url, record.relative_path) for url, record in images.items())
    markdown = _replace_urls(markdown, targets)

    logger.debug(f"Rewrote {len(images)} image URLs, flagged {len(failed)} failed images")
    return collapse_blank_lines(markdown)


def rewrite_html(
    document: str,
    images: dict[str, ImageRecord],
    failed: list[FailedImageRecord],
) -> str:
    """
    Point image references in HTML at their local copies.

    Both the raw and the HTML-escaped form of each URL are replaced. A
    warning block is inserted before every ``<img>`` of a failed URL.
    """
    for failure in sorted(failed, key=lambda f: len(f.url), reverse=True):
        warning = html_warning(failure)
        forms = {failure.url, html.escape(failure.url)}
        alternatives = "|".join(re.escape(form) for form in sorted(forms, key=len, reverse=True))
        pattern = re.compile(r"<img\b[^>]*\b(?:src|data-src)=[\"'](?:" + alternatives + r")[\"'][^>]*>")
        document = pattern.sub(lambda m, warning=warning: warning + m.group(0), document)

    targets: dict[str, Optional[str]] = {}
    for failure in failed:
        targets[failure.url] = None
        targets[html.escape(failure.url)] = None
    for url, record in images.items():
        targets[url] = record.relative_path
        targets[html.escape(url)] = record.relative_path
    document = _replace_urls(document, targets)

    logger.debug(f"Rewrote {len(images)} image URLs, flagged {len(failed)} failed images")
    return document
