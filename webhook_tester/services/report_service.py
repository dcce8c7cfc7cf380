# webhook_tester/services/report_service.py
"""
HTML report rendering for webhook batches.
Renders outcomes with the Jinja2 templates of the web package, writes dated
reports to the artifacts directory and maintains their index page.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path as PathlibPath
from typing import Any, Dict, List, Optional

from fastapi.templating import Jinja2Templates
from filelock import FileLock

from webhook_tester.core.config import config
from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.models.models import MediaMetadata, ReportFile, TaskOutcome
from webhook_tester.services.aggregator import group_failures

logger = setup_default_logging()

TEMPLATES_DIR = PathlibPath(__file__).resolve().parent.parent / "web" / "templates"
REPORT_PREFIX = "test-"
REPORT_SUFFIX = ".html"
INDEX_FILENAME = "index.html"
LIVE_REPORT_FILENAME = "webhook-results.html"


def format_duration(ms: Optional[int]) -> str:
    """Human readable duration: `N/A`, `850ms`, `12.3s` or `2m 5s`."""
    if not ms:
        return "N/A"
    if ms < 1000:
        return f"{ms}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    minutes = ms // 60000
    seconds = int((ms % 60000) / 1000 + 0.5)
    return f"{minutes}m {seconds}s"


def truncate_url(url: str, max_length: int = 60) -> str:
    if len(url) <= max_length:
        return url
    return url[: max_length - 3] + "..."


def format_metadata(metadata: Optional[MediaMetadata]) -> str:
    if metadata is None:
        return ""
    width = "?" if metadata.width is None else f"{metadata.width:g}"
    height = "?" if metadata.height is None else f"{metadata.height:g}"
    text = f"{width}×{height} • {metadata.mime_type or 'unknown'}"
    if metadata.duration:
        text += f" • {metadata.duration:g}s"
    return text


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["format_duration"] = format_duration
templates.env.filters["truncate_url"] = truncate_url
templates.env.filters["format_metadata"] = format_metadata
templates.env.filters["format_size"] = format_size


def _atomic_write(path: PathlibPath, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    with open(temp_path, "w", encoding="utf-8") as f:
        f.write(content)
    os.replace(temp_path, path)


def _artifacts_dir(artifacts_dir: Optional[str]) -> PathlibPath:
    return PathlibPath(artifacts_dir or config.ARTIFACTS_DIRECTORY)


def build_html_content(
    outcomes: List[TaskOutcome], generated_at: Optional[datetime] = None
) -> str:
    """
    Render the report page for a list of outcomes.

    Passed webhooks are listed first, failures follow grouped by normalized
    error signature, largest groups first.
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    passed = [outcome for outcome in outcomes if outcome.success]
    failed_count = len(outcomes) - len(passed)

    return templates.get_template("report.html").render(
        generated_at=generated_at.isoformat(),
        total=len(outcomes),
        passed_count=len(passed),
        failed_count=failed_count,
        success_rate=round(len(passed) * 100 / len(outcomes)) if outcomes else 0,
        passed_outcomes=passed,
        error_groups=group_failures(outcomes),
    )


def generate_html_report(outcomes: List[TaskOutcome], output_path: str) -> str:
    """
    Write the report for `outcomes` to `output_path`.

    Returns:
        str: Path of the written report
    """
    path = PathlibPath(output_path)
    _atomic_write(path, build_html_content(outcomes))
    logger.debug(f"HTML report written: {path}")
    return str(path)


def _dated_report_path(directory: PathlibPath, now: datetime) -> PathlibPath:
    stem = f"{REPORT_PREFIX}{now.strftime('%Y%m%d-%H%M%S')}"
    path = directory / f"{stem}{REPORT_SUFFIX}"
    counter = 1
    while path.exists():
        path = directory / f"{stem}-{counter}{REPORT_SUFFIX}"
        counter += 1
    return path


def generate_dated_report(
    outcomes: List[TaskOutcome],
    artifacts_dir: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Write a `test-YYYYmmdd-HHMMSS.html` report and refresh the index page.

    Args:
        outcomes: Outcomes of the batch
        artifacts_dir: Target directory, defaults to ARTIFACTS_DIRECTORY
        now: Report timestamp (local time), defaults to the current time

    Returns:
        str: Path of the dated report

    Raises:
        OSError: If the directory or the files cannot be written
    """
    directory = _artifacts_dir(artifacts_dir)
    directory.mkdir(parents=True, exist_ok=True)
    content = build_html_content(outcomes)

    lock = FileLock(str(directory / INDEX_FILENAME) + ".lock")
    with lock:
        path = _dated_report_path(directory, now or datetime.now())
        _atomic_write(path, content)
        _write_index(directory)

    logger.info(f"HTML report generated: {path}")
    return str(path)


def list_reports(artifacts_dir: Optional[str] = None) -> List[ReportFile]:
    """List the dated reports, most recent first. A missing directory yields []."""
    directory = _artifacts_dir(artifacts_dir)
    if not directory.is_dir():
        return []

    reports = []
    for path in directory.iterdir():
        if not (path.name.startswith(REPORT_PREFIX) and path.name.endswith(REPORT_SUFFIX)):
            continue
        stats = path.stat()
        reports.append(
            ReportFile(
                filename=path.name,
                created=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc),
                size=stats.st_size,
            )
        )

    reports.sort(key=lambda report: (report.created, report.filename), reverse=True)
    return reports


def _write_index(directory: PathlibPath) -> PathlibPath:
    index_path = directory / INDEX_FILENAME
    content = templates.get_template("index.html").render(
        reports=list_reports(str(directory)),
        generated_at=datetime.now(timezone.utc).isoformat(),
    )
    _atomic_write(index_path, content)
    return index_path


def is_safe_report_name(filename: str) -> bool:
    return bool(filename) and ".." not in filename and "/" not in filename and "\\" not in filename


def load_report(filename: str, artifacts_dir: Optional[str] = None) -> str:
    """
    Read a report from the artifacts directory.

    Raises:
        ValueError: If the filename contains path components
        FileNotFoundError: If the report does not exist
    """
    if not is_safe_report_name(filename):
        raise ValueError(f"Invalid report filename: {filename}")

    path = _artifacts_dir(artifacts_dir) / filename
    if not path.is_file():
        raise FileNotFoundError(f"Report not found: {filename}")
    return path.read_text(encoding="utf-8")


def log_summary(outcomes: List[TaskOutcome]) -> Dict[str, Any]:
    """
    Log a JSON summary mapping each webhook id to its produced URLs or error.

    Returns:
        Dict[str, Any]: The logged summary
    """
    summary: Dict[str, Any] = {}
    for outcome in outcomes:
        urls = (
            [artifact.url for artifact in outcome.results]
            if outcome.success
            else [f"ERROR: {outcome.error}"]
        )
        summary[outcome.webhook_id] = {"slug": outcome.slug, "urls": urls}

    logger.info("=" * 60)
    logger.info("WEBHOOK TEST SUMMARY")
    logger.info(json.dumps(summary, indent=2, ensure_ascii=False))
    logger.info("=" * 60)
    return summary
