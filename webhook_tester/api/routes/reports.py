# webhook_tester/api/routes/reports.py
"""
Report routes.
Lists and serves the dated HTML reports of previous batch runs.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import HTMLResponse

from webhook_tester.core.config import config
from webhook_tester.core.setup_logging import setup_default_logging
from webhook_tester.services.report_service import is_safe_report_name, list_reports, load_report

# Configure logging
logger = setup_default_logging()

router = APIRouter(prefix="/api", tags=["Reports"])

# ======================================================
# Endpoints
# ======================================================


@router.get(
    "/reports",
    summary="List reports",
    description="Dated HTML reports available in the artifacts directory, most recent first",
)
async def get_reports() -> List[dict]:
    """
    List generated reports.

    Returns:
        List[dict]: `filename`, `created` and `size` of every report, [] when none can be read
    """
    try:
        reports = list_reports(config.ARTIFACTS_DIRECTORY)
    except OSError as e:
        logger.warning(f"Unable to read reports directory: {e}")
        return []
    return [report.to_payload() for report in reports]


@router.get(
    "/report",
    response_class=HTMLResponse,
    summary="Get a report",
    description="Serves one dated HTML report by filename",
)
async def get_report(file: Optional[str] = Query(None, description="Report filename")):
    """
    Serve one report.

    Raises:
        HTTPException: 400 for a missing or unsafe filename, 404 for an unknown report
    """
    if not file:
        raise HTTPException(status_code=400, detail="file parameter is required")
    if not is_safe_report_name(file):
        raise HTTPException(status_code=400, detail="Invalid filename")

    try:
        content = load_report(file, config.ARTIFACTS_DIRECTORY)
    except FileNotFoundError:
        logger.info(f"Report not found: {file}")
        raise HTTPException(status_code=404, detail=f"Report not found: {file}")

    return HTMLResponse(content=content, headers={"Cache-Control": "public, max-age=3600"})
