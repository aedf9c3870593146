import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.database import close_pool
from app.errors import AnalysisError
from app.logging_config import setup_logging
from app.routers import analyze, health, journal, news

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="AI Trade Pro API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info(
        "request",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 1),
        },
    )
    return response


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    logger.warning(
        "analysis_error",
        extra={"path": request.url.path, "status": exc.status_code, "error": exc.message},
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.on_event("startup")
async def startup():
    # The journal pool is created lazily on first use
    logger.info("Starting AI Trade Pro API")


@app.on_event("shutdown")
async def shutdown():
    logger.info("Shutting down")
    await close_pool()


app.include_router(health.router, prefix="/api")
app.include_router(analyze.router, prefix="/api")
app.include_router(news.router, prefix="/api")
app.include_router(journal.router, prefix="/api")
