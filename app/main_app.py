#=================================================================
# app/main_app.py
# FastAPI application entry-point (no static serving).
#=================================================================

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

# Import API under /api/*
from app.routes import router as api_router

from app.db import init_db, dispose_db
from app.config import settings
from app.logging_filters import install_html_trim_filter

# --- FastAPI instance ---
app = FastAPI(
    title="Breez WooCommerce Catalog Sync",
    description="Imports the Breez catalog feed into WooCommerce.",
)

# --- Logging setup (console, INFO level) ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s | %(message)s"
)
logger = logging.getLogger("uvicorn.error")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
# WordPress error pages are full HTML documents; keep the log readable
install_html_trim_filter()

# --- CORS ---
origins = settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------- Include routers ----------------
app.include_router(api_router)           # /api/*

# --- Root endpoint ---
@app.get("/")
async def home():
    return {"status": "running", "service": "Breez WooCommerce Sync"}

# --- Global error handler (keeps full stack trace in logs) ---
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Sync failed: {str(exc)}"},
    )

@app.on_event("startup")
async def _startup():
    # Run history table
    await init_db()
    logger.info("Registered routes: %s", ", ".join(sorted({r.path for r in app.routes})))

@app.on_event("shutdown")
async def _shutdown():
    await dispose_db()

#if __name__ == "__main__":
#    import uvicorn
#
#    uvicorn.run(app, host="0.0.0.0", port=8000)
