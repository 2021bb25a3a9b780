import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Ensure environment variables are loaded at import time
from config import env  # noqa: F401
from config.settings import CatalogSettings
from domain.exceptions import CatalogError, StoreError
from infrastructure.database import create_repository
from presentation.api import catalog_router
from presentation.schemas import ErrorResponse, HealthResponse

settings = CatalogSettings.from_env()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.repository = create_repository(settings)
    yield
    app.state.repository.close()


app = FastAPI(title="Local Library Catalog API", version="1.0.0", lifespan=lifespan)

allow_origins = [os.getenv("CATALOG_FRONTEND_URL", "http://localhost:3000")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Include routers
app.include_router(catalog_router)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    logger.warning(f"{request.method} {request.url.path} failed: {exc.kind} {exc.message}")
    body = ErrorResponse(kind=exc.kind, message=exc.message)
    return JSONResponse(body.model_dump(), status_code=exc.status_code)


@app.get("/")
async def root():
    return {"message": "Local Library Catalog API"}


@app.get("/health")
async def health_check(request: Request):
    repository = request.app.state.repository
    store = type(repository).__name__
    try:
        await asyncio.to_thread(repository.ping)
        return HealthResponse(status="healthy", store=store)
    except StoreError as e:
        return HealthResponse(status="unhealthy", store=store, error=e.message)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
