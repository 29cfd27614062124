from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from charlieverse.dependencies import UploadServiceDep, require_action
from charlieverse.models.api import FileInfo, UploadResponse
from charlieverse.models.user import Principal
from charlieverse.services.authorization import Action
from charlieverse.services.upload_service import IncomingFile

router = APIRouter(prefix="/files", tags=["files"])

Uploader = Annotated[Principal, Depends(require_action(Action.UPLOAD_FILES))]
Viewer = Annotated[Principal, Depends(require_action(Action.VIEW_FILES))]


async def _read_limited(upload: UploadFile, limit: int) -> IncomingFile:
    # One byte past the limit is enough to reject an oversized part.
    data = await upload.read(limit + 1)
    return IncomingFile(
        filename=upload.filename or "upload",
        content_type=upload.content_type or "application/octet-stream",
        data=data,
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_files(
    principal: Uploader,
    service: UploadServiceDep,
    files: Annotated[list[UploadFile], File()],
    project_id: Annotated[str | None, Form(alias="projectId")] = None,
    description: Annotated[str | None, Form()] = None,
) -> UploadResponse:
    incoming = [await _read_limited(upload, service.max_size) for upload in files]
    stored = await service.store(principal, incoming, project_id=project_id, description=description)
    return UploadResponse(files=stored)


@router.get("/{filename}/info", response_model=FileInfo)
async def file_info(filename: str, _: Viewer, service: UploadServiceDep) -> FileInfo:
    return await service.file_info(filename)


@router.get("/{filename}")
async def download_file(filename: str, _: Viewer, service: UploadServiceDep) -> FileResponse:
    return FileResponse(service.resolve_file(filename))
