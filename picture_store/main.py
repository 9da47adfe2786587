import logging
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from picture_store.coordinator import InvalidInputError, StorageCoordinator
from picture_store.db import init_db
from picture_store.dependencies import get_storage_coordinator
from picture_store.schemas import PictureDetailResponse, PictureUploadResponse
from picture_store.storage.base import StorageError
from picture_store.urls import pictures_path
from config import get_settings

# Get settings and configure logging before anything else
settings = get_settings()
settings.configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Metadata storage: {settings.metadata_storage}")
    logger.info(f"Storage root: {settings.storage_root}")

    settings.storage_root.mkdir(parents=True, exist_ok=True)
    init_db()

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Simple health-check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "version": settings.app_version,
    }


@app.get("/config")
def get_config() -> dict[str, Any]:
    """Get current configuration (non-sensitive values only)."""
    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "environment": settings.environment,
        "debug": settings.debug,
        "api_prefix": settings.api_prefix,
        "metadata_storage": settings.metadata_storage,
        "log_level": settings.log_level,
        "log_json": settings.log_json,
        "max_upload_size": settings.max_upload_size,
    }


def _content_disposition(filename: str) -> str:
    """Inline disposition header that survives non-ASCII and control characters."""
    if filename.isascii() and filename.isprintable() and '"' not in filename:
        return f'inline; filename="{filename}"'
    return f"inline; filename*=UTF-8''{quote(filename, safe='')}"


router = APIRouter(tags=["pictures"])


# Endpoints are plain functions: the coordinator blocks on disk and
# database I/O, so FastAPI runs them in its threadpool.
@router.post("/upload", response_model=PictureUploadResponse, status_code=201)
def upload_picture(
    picture: UploadFile,
    coordinator: StorageCoordinator = Depends(get_storage_coordinator),
) -> PictureUploadResponse:
    """Upload a picture.

    Args:
        picture: The uploaded picture file.
        coordinator: Coordinator for the blob store and metadata index.

    Returns:
        PictureUploadResponse: Identifier, name, upload date and URL.

    Raises:
        HTTPException: 400 if the file is empty, 413 if it is too large,
            500 if it cannot be stored.
    """
    if picture.size == 0:
        raise HTTPException(status_code=400, detail="Picture cannot be empty")
    if picture.size is not None and picture.size > settings.max_upload_size:
        raise HTTPException(
            status_code=413,
            detail=f"Picture exceeds maximum upload size of {settings.max_upload_size} bytes",
        )

    logger.info(f"Processing picture: {picture.filename}, size: {picture.size}")

    try:
        record = coordinator.store(
            picture.file,
            picture.filename,
            picture.content_type,
            picture.size,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to upload picture: {e}")
        raise HTTPException(status_code=500, detail="Could not store picture. Please try again!")

    return PictureUploadResponse.from_record(record)


@router.get("/view/{picture_id}")
def view_picture(
    picture_id: UUID,
    coordinator: StorageCoordinator = Depends(get_storage_coordinator),
) -> Response:
    """Serve a picture's bytes with its recorded content type.

    Raises:
        HTTPException: 404 if either the bytes or the record are missing.
    """
    try:
        content = coordinator.fetch(picture_id)
    except StorageError as e:
        logger.error(f"Failed to read picture {picture_id}: {e}")
        raise HTTPException(status_code=500, detail="Could not read picture")

    record = coordinator.find_by_id(picture_id)
    if content is None or record is None:
        raise HTTPException(status_code=404, detail=f"Picture with id [{picture_id}] not found")

    return Response(
        content=content,
        media_type=record.content_type,
        headers={"Content-Disposition": _content_disposition(record.original_name)},
    )


@router.get("/{picture_id}", response_model=PictureDetailResponse)
def get_picture(
    picture_id: UUID,
    coordinator: StorageCoordinator = Depends(get_storage_coordinator),
) -> PictureDetailResponse:
    """Get a picture's metadata record."""
    record = coordinator.find_by_id(picture_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Picture with id [{picture_id}] not found")
    return PictureDetailResponse.from_record(record)


@router.delete("/{picture_id}", status_code=204)
def delete_picture(
    picture_id: UUID,
    coordinator: StorageCoordinator = Depends(get_storage_coordinator),
) -> Response:
    """Delete a picture's bytes and record.

    Raises:
        HTTPException: 404 if there is no record, 500 if the bytes cannot be removed.
    """
    try:
        deleted = coordinator.remove(picture_id)
    except StorageError as e:
        logger.error(f"Failed to delete picture {picture_id}: {e}")
        raise HTTPException(status_code=500, detail="Could not delete picture")

    if not deleted:
        raise HTTPException(status_code=404, detail=f"Picture with id [{picture_id}] not found")
    return Response(status_code=204)


app.include_router(router, prefix=pictures_path(settings.api_prefix))
