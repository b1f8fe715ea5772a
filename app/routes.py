#=======================================================================================
# app/routes.py
# FastAPI routes for Breez → WooCommerce imports, job status and health.
#
# ✅ All import endpoints live under /api/import/* and require HTTP Basic (admin)
# ✅ Product paging is caller-driven: each page answers with next_page
#
# IMPORTANT: In main_app.py, include with NO extra prefix to avoid /api/api duplication:
#   from app.routes import router as api_router
#   app.include_router(api_router)   # <-- no prefix here
#=======================================================================================

import asyncio
import logging
import secrets
import time
import uuid
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.responses import JSONResponse

from app.breez import BreezClient
from app.config import settings
from app.models.runs import list_runs, record_run
from app.sync import sync
from app.sync.context import SyncContext
from app.woocommerce import WooStore

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api", tags=["Import API"])

# ---------------------------
# HTTP Basic (admin)
# ---------------------------
security = HTTPBasic()

def verify_admin(credentials: HTTPBasicCredentials = Depends(security)):
    ok_user = secrets.compare_digest(credentials.username or "", settings.ADMIN_USER or "")
    ok_pass = secrets.compare_digest(credentials.password or "", settings.ADMIN_PASS or "")
    if not (ok_user and ok_pass):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Basic"},
        )

# ---------------------------
# Helpers
# ---------------------------
def _now_ts() -> int:
    return int(time.time())

def new_context() -> SyncContext:
    """One context per request; tests override this."""
    return SyncContext.from_settings()

async def _recorded(kind: str, summary: Dict[str, Any], *, started_at: datetime,
                    created: int = 0, errors: int = 0) -> Dict[str, Any]:
    run_id = await record_run(kind, started_at=started_at, summary=summary,
                              created_count=created, error_count=errors)
    return {**summary, "run_id": run_id}

# ---------------------------
# Background job store (in-memory)
# ---------------------------
_JOBS: Dict[str, Dict[str, Any]] = {}
_JOBS_LOCK = asyncio.Lock()
_JOBS_TTL_SECONDS = 60 * 60  # keep finished jobs 1 hour

async def _cleanup_jobs_now():
    """Remove finished jobs older than TTL."""
    cutoff = _now_ts() - _JOBS_TTL_SECONDS
    async with _JOBS_LOCK:
        to_del = [jid for jid, rec in _JOBS.items()
                  if rec.get("finished") and rec.get("finished") < cutoff]
        for jid in to_del:
            _JOBS.pop(jid, None)

async def _run_products_job(job_id: str, *, start_page: int):
    """Background runner: walk every product page with one shared context."""
    logger.info(f"[JOB][RUN] Job {job_id} starting (start_page={start_page})")
    async with _JOBS_LOCK:
        _JOBS[job_id].update({"status": "running", "started": _now_ts()})

    started_at = datetime.utcnow()
    ctx = new_context()
    page = start_page
    last_page = None
    created: list[int] = []
    failed = 0
    try:
        while page:
            report = await sync.import_products(page, ctx=ctx)
            created.extend(report.created_ids)
            failed += report.counts().get("failed", 0)
            last_page = page
            async with _JOBS_LOCK:
                _JOBS[job_id].update({"page": page, "created": len(created), "failed": failed})
            page = report.next_page
        summary = {"created_ids": created, "failed": failed, "pages": last_page}
        result = await _recorded("products", summary, started_at=started_at,
                                 created=len(created), errors=failed)
        async with _JOBS_LOCK:
            _JOBS[job_id].update({"status": "done", "finished": _now_ts(), "result": result})
        logger.info(f"[JOB][COMPLETE] Job {job_id} finished successfully")
    except Exception as e:
        await record_run("products", started_at=started_at, created_count=len(created),
                         error_count=failed, error=str(e))
        async with _JOBS_LOCK:
            _JOBS[job_id].update({"status": "error", "finished": _now_ts(), "error": str(e)})
        logger.error(f"[JOB][ERROR] Job {job_id} failed: {e}")

    await _cleanup_jobs_now()

# ----------------------------------------------------------------------
# Imports
# ----------------------------------------------------------------------

@router.post("/import/categories", dependencies=[Depends(verify_admin)])
async def api_import_categories():
    started_at = datetime.utcnow()
    ids = await sync.import_categories(new_context())
    return JSONResponse(content=await _recorded("categories", {"created": ids},
                                                started_at=started_at, created=len(ids)))

@router.post("/import/brands", dependencies=[Depends(verify_admin)])
async def api_import_brands():
    started_at = datetime.utcnow()
    ids = await sync.import_brands(new_context())
    return JSONResponse(content=await _recorded("brands", {"created": ids},
                                                started_at=started_at, created=len(ids)))

@router.post("/import/products", dependencies=[Depends(verify_admin)])
async def api_import_products(page_number: int = Query(1, ge=1)):
    """
    Import one page of products. Call again with `next_page` until it is null.
    """
    started_at = datetime.utcnow()
    report = await sync.import_products(page_number, ctx=new_context())
    summary = report.to_dict()
    return JSONResponse(content=await _recorded(
        "products", summary, started_at=started_at,
        created=len(report.created_ids), errors=report.counts().get("failed", 0),
    ))

@router.post("/import/products/all", dependencies=[Depends(verify_admin)])
async def api_import_products_all(start_page: int = Query(1, ge=1)):
    """
    Non-blocking: returns { job_id, status } immediately (202 Accepted);
    poll GET /api/import/status/{job_id} until "done" or "error".
    """
    job_id = uuid.uuid4().hex
    logger.info(f"[JOB][REGISTER] Registering new products job: {job_id} (start_page={start_page})")
    async with _JOBS_LOCK:
        _JOBS[job_id] = {
            "id": job_id,
            "status": "queued",
            "started": None,
            "finished": None,
            "request": {"start_page": start_page},
        }
    asyncio.create_task(_run_products_job(job_id, start_page=start_page))
    return JSONResponse(
        status_code=202,
        content={"job_id": job_id, "status": "queued"},
        headers={"Location": f"/api/import/status/{job_id}"},
    )

@router.post("/import/techs", dependencies=[Depends(verify_admin)])
async def api_import_techs():
    started_at = datetime.utcnow()
    stats = await sync.import_all_product_techs(new_context())
    return JSONResponse(content=await _recorded("techs", stats, started_at=started_at,
                                                errors=stats.get("errors", 0)))

@router.post("/import/stocks", dependencies=[Depends(verify_admin)])
async def api_import_stocks():
    started_at = datetime.utcnow()
    stats = await sync.import_product_stocks(new_context())
    return JSONResponse(content=await _recorded("stocks", stats, started_at=started_at,
                                                errors=stats.get("errors", 0)))

# ----------------------------------------------------------------------
# Jobs & history
# ----------------------------------------------------------------------

@router.get("/import/jobs", dependencies=[Depends(verify_admin)])
async def api_import_jobs():
    """Return all jobs in the background job store (admin-only)."""
    async with _JOBS_LOCK:
        jobs = list(_JOBS.values())
    jobs.sort(key=lambda j: j.get("started") or 0, reverse=True)
    return JSONResponse(content={"jobs": jobs})

@router.get("/import/status/{job_id}", dependencies=[Depends(verify_admin)])
async def api_import_status(job_id: str):
    """Poll a background products job."""
    async with _JOBS_LOCK:
        rec = _JOBS.get(job_id)
    if not rec:
        raise HTTPException(status_code=404, detail="job not found")
    return JSONResponse(content=rec)

@router.get("/import/runs", dependencies=[Depends(verify_admin)])
async def api_import_runs(limit: int = Query(50, ge=1, le=500), kind: str | None = None):
    return JSONResponse(content={"runs": await list_runs(limit=limit, kind=kind)})

# ----------------------------------------------------------------------
# Health
# ----------------------------------------------------------------------

@router.get("/health")
async def api_health():
    """
    - Breez: GET {BREEZ_API_URL}/brands/ (expects 200)
    - WordPress: GET {WP_API_URL or WC_BASE_URL/wp-json} (expects 200)
    """
    breez = await BreezClient().ping()
    woo = await WooStore().ping() if (settings.WC_BASE_URL or settings.WP_API_URL) else {
        "ok": False, "error": "WP_API_URL and WC_BASE_URL not set"
    }
    return {"ok": bool(breez.get("ok") and woo.get("ok")), "breez": breez, "woocommerce": woo}
