"""Plain-text report of images that failed to download."""

from datetime import datetime, timezone
from typing import Optional

from ..models.document import FailedImageRecord, ImageFailureKind

KIND_DESCRIPTIONS = {
    ImageFailureKind.BLOCKED: "Blocked by the server (cross-origin or hotlink protection)",
    ImageFailureKind.NOT_FOUND: "Not found (the image was moved or deleted)",
    ImageFailureKind.TIMEOUT: "Timed out",
    ImageFailureKind.OTHER: "Other error",
}

REMEDIATION_STEPS = [
    "Open the source page in a browser and check whether the image still displays.",
    "For blocked images, save them manually from the browser, which sends the site's cookies and referrer.",
    "For missing images, ask the site owner for the new location or drop the reference.",
    "For timeouts, run again later or raise the image timeout.",
    "Use the URL list below with a download manager to retry in bulk.",
]


def build_failure_report(
    failed: list[FailedImageRecord],
    title: str,
    total_images: Optional[int] = None,
    generated_at: Optional[datetime] = None,
) -> Optional[str]:
    """
    Build the image failure report.

    Args:
        failed: Failed image records of the run
        title: Document title
        total_images: Number of unique images attempted (for the summary line)
        generated_at: Report timestamp (default: now, UTC)

    Returns:
        Report text, or None when no image failed
    """
    if not failed:
        return None

    generated_at = generated_at or datetime.now(timezone.utc)
    lines = [
        f"Image download failures: {title}",
        "=" * 60,
        f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')}",
    ]
    if total_images is not None:
        lines.append(f"Failed: {len(failed)} of {total_images} images")
    else:
        lines.append(f"Failed: {len(failed)} images")
    lines.append("")

    by_page: dict[str, list[FailedImageRecord]] = {}
    for failure in failed:
        by_page.setdefault(failure.page_title, []).append(failure)

    for page_title, failures in by_page.items():
        lines.append(f"Page: {page_title}")
        lines.append("-" * 60)
        for number, failure in enumerate(failures, start=1):
            lines.append(f"  {number}. {failure.url}")
            if failure.alt_text:
                lines.append(f"     Alt text: {failure.alt_text}")
            if failure.context_snippet:
                lines.append(f"     Context: {failure.context_snippet}")
            lines.append(f"     Error: {failure.error_reason}")
            lines.append(f"     Classification: {KIND_DESCRIPTIONS[failure.kind]}")
        lines.append("")

    lines.append("Remediation")
    lines.append("-" * 60)
    lines.extend(f"  {number}. {step}" for number, step in enumerate(REMEDIATION_STEPS, start=1))
    lines.append("")

    lines.append("Failed URLs")
    lines.append("-" * 60)
    lines.extend(failure.url for failure in failed)

    return "\n".join(lines) + "\n"
