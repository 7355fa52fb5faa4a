import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.errors import http_error
from app.core.firebase import init_firebase
from app.core.rate_limit_middleware import RateLimitMiddleware
from app.payments.base import PaymentGatewayError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VERSION_FILE = Path(__file__).resolve().parent.parent / "VERSION"


def get_version() -> str:
    if VERSION_FILE.exists():
        return VERSION_FILE.read_text().strip() or "1.0.0"
    return "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema is managed by Alembic (alembic upgrade head)
    init_firebase()
    logger.info(f"Directory API started - version: {app.version}")
    yield
    logger.info("Directory API stopped")


app = FastAPI(
    title="Grow Bharat Vyapaar API",
    version=get_version(),
    debug=settings.debug,
    redirect_slashes=False,
    lifespan=lifespan,
)


async def service_error_handler(request: Request, exc: Exception):
    """Domain errors that escape a route map to the same responses routes raise"""
    error = http_error(exc)
    logger.warning(f"{request.method} {request.url.path}: Failure - {exc}")
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


app.add_exception_handler(ValueError, service_error_handler)
app.add_exception_handler(PermissionError, service_error_handler)
app.add_exception_handler(PaymentGatewayError, service_error_handler)

app.add_middleware(RateLimitMiddleware)
# Added last so CORS wraps rate limiting and covers 429 responses
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Payment webhooks are mounted under /api/v1/webhooks by the v1 router
app.include_router(api_router, prefix=settings.api_v1_str)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
