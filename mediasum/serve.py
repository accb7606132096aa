"""
FastAPI server for media summarization.

Endpoints:
    GET  /health     - Health check
    POST /summarize  - Upload an audio/video file (field "mediaFile")

Usage:
    mediasum-serve
    uvicorn mediasum.serve:app --reload
"""

from __future__ import annotations

import argparse
import logging
import secrets
import time
from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mediasum.config import load_config, sampling_policy_from_config
from mediasum.errors import PipelineError, UnsupportedMediaType
from mediasum.io import ensure_dir
from mediasum.pipeline import MediaPipeline, build_pipeline

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_BYTES = 1024 * 1024

app = FastAPI(
    title="Media Summarizer API",
    description="Summarize audio and document video uploads",
    version="0.1.0",
)

# Initialized lazily on first request (or injected by tests)
_config: dict[str, Any] | None = None
_pipeline: MediaPipeline | None = None


def get_config() -> dict[str, Any]:
    """Get the global configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_pipeline() -> MediaPipeline:
    """Get the global pipeline instance."""
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline(get_config())
    return _pipeline


def configure(config: dict[str, Any], pipeline: MediaPipeline | None = None) -> None:
    """Replace the global configuration and pipeline."""
    global _config, _pipeline
    _config = config
    _pipeline = pipeline


class SummaryResponse(BaseModel):
    summary: str
    modelUsed: str


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
    code: str | None = Field(default=None, description="Pipeline error code")


class UploadTooLarge(Exception):
    pass


def _upload_path(uploads_dir: Path, filename: str | None) -> Path:
    """Unique destination for an upload, keeping its extension."""
    suffix = Path(filename or "").suffix
    unique = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"
    return uploads_dir / f"mediaFile-{unique}{suffix}"


async def _store_upload(upload: UploadFile, dest: Path, max_bytes: int) -> int:
    """Stream an upload to disk, enforcing the size limit."""
    written = 0
    with open(dest, "wb") as f:
        while chunk := await upload.read(UPLOAD_CHUNK_BYTES):
            written += len(chunk)
            if written > max_bytes:
                raise UploadTooLarge(f"File exceeds {max_bytes // (1024 * 1024)} MB limit")
            f.write(chunk)
    return written


def _error(status: int, error: str, details: str | None = None, code: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details, code=code)
    return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))


# Endpoints
@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post(
    "/summarize",
    response_model=SummaryResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 415: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def summarize(mediaFile: UploadFile | None = File(default=None)):
    """
    Summarize an uploaded audio or video file.

    The upload is removed once processing finishes, successful or not.
    """
    if mediaFile is None or not mediaFile.filename:
        return _error(400, "No file uploaded.")

    config = get_config()
    server_cfg = config.get("server", {})
    uploads_dir = ensure_dir(Path(server_cfg.get("uploads_dir", "./uploads")))
    max_bytes = int(server_cfg.get("max_upload_mb", 100)) * 1024 * 1024

    # Settings are checked before the upload touches disk
    try:
        policy = sampling_policy_from_config(config)
        pipeline = get_pipeline()
    except (TypeError, ValueError) as e:
        return _error(500, "Server is not configured.", str(e))

    dest = _upload_path(uploads_dir, mediaFile.filename)
    try:
        size = await _store_upload(mediaFile, dest, max_bytes)
    except UploadTooLarge as e:
        dest.unlink(missing_ok=True)
        return _error(413, "File too large.", str(e))
    except BaseException:
        dest.unlink(missing_ok=True)
        raise

    logger.info(f"Received file: {mediaFile.filename}, type: {mediaFile.content_type}, {size} bytes")

    try:
        result = await run_in_threadpool(pipeline.run, dest, mediaFile.content_type, policy)
    except UnsupportedMediaType as e:
        return _error(415, "Unsupported file type.", str(e), e.code)
    except PipelineError as e:
        return _error(500, "Failed to process file.", str(e), e.code)

    return SummaryResponse(**result.to_response())


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Media summarization server")
    parser.add_argument("-c", "--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Port")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = load_config(args.config)
    configure(config)
    server_cfg = config.get("server", {})

    uvicorn.run(
        app,
        host=args.host or server_cfg.get("host", "127.0.0.1"),
        port=args.port or server_cfg.get("port", 3001),
    )


if __name__ == "__main__":
    main()
