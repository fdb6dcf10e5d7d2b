import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hotelops.config import settings
from hotelops.database import async_session_factory
from hotelops.dependencies import build_services
from hotelops.errors import DependencyUnavailable, PersistenceFailure, ValidationFailure
from hotelops.routers import operations, pricing, weather

QUIET_LOGGERS = ("httpcore", "httpx", "uvicorn.access")


def configure_logging() -> None:
    """Console plus a rotating file under ``settings.log_dir``."""
    log_dir = Path(settings.log_dir) if settings.log_dir else Path(__file__).resolve().parent.parent / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / "hotelops.log",
        maxBytes=settings.log_file_max_mb * 1024 * 1024,
        backupCount=settings.log_file_backups,
        encoding="utf-8",
    )
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(), file_handler],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup - wire services once; a pre-set container (tests) is left alone
    services = getattr(app.state, "services", None)
    owned = services is None
    if owned:
        services = build_services(async_session_factory, settings)
        app.state.services = services
        logger.info("Operations services initialised")

    yield

    # Shutdown
    if owned:
        await services.close()
        app.state.services = None
        logger.info("Redis and OpenWeather clients closed")


app = FastAPI(
    title="HotelOps",
    description="Hotel operations intelligence and advisory ticketing",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str, field: str | None = None) -> JSONResponse:
    body = {"success": False, "error": message}
    if field:
        body["field"] = field
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure):
    return _error(400, exc.message, exc.field)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "header")]
    return _error(400, first.get("msg", "Invalid request"), loc[-1] if loc else None)


@app.exception_handler(DependencyUnavailable)
async def dependency_unavailable_handler(request: Request, exc: DependencyUnavailable):
    logger.warning(f"{request.url.path}: {exc}")
    return _error(503, str(exc))


@app.exception_handler(PersistenceFailure)
async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
    logger.error(f"{request.url.path}: {exc}")
    return _error(500, str(exc))


app.include_router(operations.router, prefix="/api/operations", tags=["operations"])
app.include_router(pricing.router, prefix="/api/pricing", tags=["pricing"])
app.include_router(weather.router, prefix="/api/weather", tags=["weather"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "hotelops"}
