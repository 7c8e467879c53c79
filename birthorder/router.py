# birthorder/router.py
from __future__ import annotations

import json
import logging
import math
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from starlette.concurrency import run_in_threadpool

from .errors import StorageError, ValidationError
from .export import to_csv
from .models import (
    HealthResponse,
    RegionSubmissionsResponse,
    StatisticsResponse,
    SubmissionListResponse,
    SubmissionResponse,
    SubmitDataResponse,
)
from .store import SubmissionStore
from .validator import validate_submission

logger = logging.getLogger(__name__)

router = APIRouter()

_STARTED_AT = time.monotonic()

MAX_PAGE_SIZE = 1000


def get_store(request: Request) -> SubmissionStore:
    return request.app.state.store


def _client_ip(request: Request):
    return request.client.host if request.client else None


_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


async def _read_body(request: Request) -> Any:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in _FORM_TYPES:
        form = await request.form()
        return {k: v for k, v in form.items() if isinstance(v, str)}

    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON or form data")


def _int_or_default(raw: Optional[str], default: int) -> int:
    # Like parseInt(raw) || default: leading digits count, anything below 1 falls back.
    m = _LEADING_INT.match(raw or "")
    value = int(m.group(1)) if m else 0
    return value if value >= 1 else default


@router.post(
    "/submit-data",
    summary="Validate and store one research submission (JSON or form-encoded)",
    response_model=SubmitDataResponse,
)
async def submit_data(request: Request, store: SubmissionStore = Depends(get_store)) -> SubmitDataResponse:
    data = await _read_body(request)

    record = await run_in_threadpool(
        validate_submission,
        data,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    saved = await run_in_threadpool(store.create, record)

    logger.info("[Submit] stored id=%s region=%s backend=%s", saved.id, saved.region, store.name)
    return SubmitDataResponse(submissionId=saved.id)


@router.get(
    "/submissions",
    summary="List submissions, newest first, with offset pagination",
    response_model=SubmissionListResponse,
)
async def list_submissions(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    store: SubmissionStore = Depends(get_store),
) -> SubmissionListResponse:
    page_no = _int_or_default(page, 1)
    page_size = min(_int_or_default(limit, 50), MAX_PAGE_SIZE)

    items, total = await run_in_threadpool(store.list, page_no, page_size)
    return SubmissionListResponse(
        count=len(items),
        total=total,
        page=page_no,
        totalPages=math.ceil(total / page_size),
        submissions=items,
    )


@router.get(
    "/submissions/region/{region}",
    summary="List every submission for one region",
    response_model=RegionSubmissionsResponse,
)
async def submissions_by_region(
    region: str,
    store: SubmissionStore = Depends(get_store),
) -> RegionSubmissionsResponse:
    items = await run_in_threadpool(store.list_by_region, region)
    return RegionSubmissionsResponse(region=region, count=len(items), submissions=items)


@router.get(
    "/submissions/{submission_id}",
    summary="Fetch a single submission by id",
    response_model=SubmissionResponse,
)
async def get_submission(
    submission_id: str,
    store: SubmissionStore = Depends(get_store),
) -> SubmissionResponse:
    sub = await run_in_threadpool(store.get, submission_id)
    return SubmissionResponse(submission=sub)


@router.get(
    "/statistics",
    summary="Aggregate statistics over all submissions",
    response_model=StatisticsResponse,
    response_model_exclude_none=True,
)
async def statistics(store: SubmissionStore = Depends(get_store)) -> StatisticsResponse:
    stats = await run_in_threadpool(store.statistics)
    if stats is None:
        return StatisticsResponse(message="No submissions yet", statistics={})
    return StatisticsResponse(statistics=stats)


@router.get(
    "/export-csv",
    summary="Download all submissions as CSV",
    response_class=Response,
)
async def export_csv(store: SubmissionStore = Depends(get_store)) -> Response:
    rows = await run_in_threadpool(store.export_rows)
    csv_text = to_csv(rows)
    headers = {"Content-Disposition": 'attachment; filename="submissions.csv"'}
    return Response(content=csv_text, media_type="text/csv", headers=headers)


@router.get(
    "/health",
    summary="Liveness check including storage connectivity",
    response_model=HealthResponse,
    response_model_exclude_none=True,
)
async def health(store: SubmissionStore = Depends(get_store)) -> HealthResponse:
    now = datetime.now(timezone.utc).isoformat()
    try:
        await run_in_threadpool(store.ping)
    except StorageError:
        # Details were logged by the store.
        return HealthResponse(status="unhealthy", database="disconnected", timestamp=now)

    return HealthResponse(
        status="healthy",
        database="connected" if store.has_database else None,
        timestamp=now,
        uptime=round(time.monotonic() - _STARTED_AT, 3),
    )
