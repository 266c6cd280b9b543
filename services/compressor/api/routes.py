from __future__ import annotations

import logging
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, File, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from services.compressor.application.dto import CompressUploadsCommand, UploadedFile
from services.compressor.application.use_cases import (
    CompressUploadsUseCase,
    ListArtifactsUseCase,
)
from services.compressor.domain.artifact import CompressedArtifact, StoredArtifact
from services.compressor.domain.errors import ArtifactStorageError, BatchValidationError

logger = logging.getLogger(__name__)


class UploadResult(BaseModel):
    type: str
    status: str
    fileUrl: str | None
    originalName: str
    originalSize: int
    compressedSize: int
    error: str | None = None

    @classmethod
    def from_domain(cls, artifact: CompressedArtifact, public_prefix: str) -> "UploadResult":
        file_url = None
        if artifact.compressed_relative_path is not None:
            file_url = _public_url(public_prefix, artifact.compressed_relative_path)
        return cls(
            type=artifact.media_type.value,
            status=artifact.status.value,
            fileUrl=file_url,
            originalName=artifact.source_file_name,
            originalSize=artifact.original_size_bytes,
            compressedSize=artifact.compressed_size_bytes,
            error=artifact.error,
        )


class UploadResponse(BaseModel):
    message: str
    results: list[UploadResult]


class CompressedMediaItem(BaseModel):
    url: str
    originalName: str
    compressedSize: int
    originalSize: int

    @classmethod
    def from_domain(cls, stored: StoredArtifact, public_prefix: str) -> "CompressedMediaItem":
        return cls(
            url=_public_url(public_prefix, stored.file_name),
            originalName=stored.original_name,
            compressedSize=stored.compressed_size,
            originalSize=stored.original_size,
        )


def _public_url(public_prefix: str, file_name: str) -> str:
    return f"{public_prefix.rstrip('/')}/{quote(file_name)}"


def create_router(
    compress_uploads_use_case: CompressUploadsUseCase,
    list_artifacts_use_case: ListArtifactsUseCase,
    *,
    public_prefix: str = "/compressed",
) -> APIRouter:
    router = APIRouter(tags=["media"])

    @router.post("/upload", response_model=UploadResponse, status_code=200)
    async def upload_endpoint(
        media: List[UploadFile] | None = File(default=None),
    ):
        uploads = media or []
        if not uploads:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"message": "No files were uploaded."},
            )

        try:
            files = [
                UploadedFile(filename=upload.filename or "", content=await upload.read())
                for upload in uploads
            ]
            artifacts = await run_in_threadpool(
                compress_uploads_use_case.execute, CompressUploadsCommand(files=files)
            )
        except BatchValidationError as exc:
            logger.info("Rejected upload batch: %s", exc)
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST, content={"message": str(exc)}
            )
        except Exception as exc:
            logger.exception("Upload compression failed")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Compression failed", "details": str(exc)},
            )

        return UploadResponse(
            message="Uploaded and Compressed",
            results=[UploadResult.from_domain(item, public_prefix) for item in artifacts],
        )

    @router.get(public_prefix, response_model=list[CompressedMediaItem])
    async def list_compressed_endpoint():
        try:
            stored = await run_in_threadpool(list_artifacts_use_case.execute)
        except ArtifactStorageError as exc:
            logger.error("Listing compressed media failed: %s", exc)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Cannot read compressed directory"},
            )
        return [CompressedMediaItem.from_domain(item, public_prefix) for item in stored]

    return router
