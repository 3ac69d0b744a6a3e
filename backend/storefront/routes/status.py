"""
Storefront Backend — Status Routes
====================================

What:  GET /api/status (JSON snapshot) and GET / (HTML page for humans).
Who:   Load balancers, uptime monitors, and developers opening the base URL.

Both are unguarded and have no inputs. The JSON endpoint sets permissive
CORS headers itself, independently of the global CORS middleware, so
monitoring dashboards on any origin can read it.
"""

import html
import logging
from datetime import datetime
from string import Template

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse

from storefront.config import Settings
from storefront.dependencies import get_app_settings
from storefront.middleware.status_cors import STATUS_ALLOWED_HEADERS
from storefront.schemas.common import StatusSnapshot
from storefront.services.status_service import StatusReporter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Status"])
page_router = APIRouter(tags=["Status"])

STATUS_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": ", ".join(STATUS_ALLOWED_HEADERS),
}


@router.get(
    "",
    response_model=StatusSnapshot,
    response_model_exclude_none=True,
    summary="Service status",
    description=(
        "Reports that the service is up, with its version and environment. "
        "Outside production it also reports uptime, memory, platform and Python version."
    ),
)
@router.get("/", response_model=StatusSnapshot, response_model_exclude_none=True, include_in_schema=False)
async def get_status(
    response: Response,
    settings: Settings = Depends(get_app_settings),
) -> StatusSnapshot:
    response.headers.update(STATUS_CORS_HEADERS)
    return StatusReporter(settings).snapshot()


_PAGE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>$title</title>
  <style>
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, Cantarell, sans-serif;
      background-color: #f7f7f7;
      color: #333;
      margin: 0;
      display: flex;
      justify-content: center;
      align-items: center;
      min-height: 100vh;
    }
    .status-card {
      background-color: white;
      border-radius: 8px;
      box-shadow: 0 4px 12px rgba(0, 0, 0, 0.1);
      padding: 2rem;
      max-width: 500px;
      width: 100%;
    }
    .header { display: flex; align-items: center; margin-bottom: 1.5rem; }
    .status-indicator {
      width: 12px;
      height: 12px;
      background-color: #10B981;
      border-radius: 50%;
      margin-right: 12px;
    }
    h1 { margin: 0; font-size: 1.5rem; font-weight: 600; }
    .info-grid { display: grid; grid-template-columns: 120px 1fr; gap: 12px; margin-top: 1.5rem; }
    .label { color: #666; }
    .value { font-weight: 500; }
    .api-url {
      margin-top: 1.5rem;
      padding: 1rem;
      background-color: #f1f5f9;
      border-radius: 4px;
      font-family: monospace;
      display: block;
    }
  </style>
</head>
<body>
  <div class="status-card">
    <div class="header">
      <div class="status-indicator"></div>
      <h1>$title</h1>
    </div>
    <p>The backend server is currently running.</p>
    <div class="info-grid">
      <div class="label">Version:</div>
      <div class="value">$version</div>
      <div class="label">Environment:</div>
      <div class="value">$environment</div>
$started
    </div>
    <code class="api-url">API Status endpoint: /api/status</code>
  </div>
</body>
</html>
""")

_STARTED_ROW = Template("""      <div class="label">Started at:</div>
      <div class="value">$started_at</div>""")


def render_status_page(settings: Settings, started_at: datetime) -> str:
    """Fill the status page; the start time is only shown outside production."""
    started = ""
    if not settings.is_production:
        started = _STARTED_ROW.substitute(
            started_at=html.escape(started_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip())
        )
    return _PAGE.substitute(
        title="API Server" if settings.is_production else "Backend Status",
        version=html.escape(settings.version),
        environment=html.escape(settings.environment),
        started=started,
    )


@page_router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def status_page(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> HTMLResponse:
    return HTMLResponse(render_status_page(settings, request.app.state.started_at))
