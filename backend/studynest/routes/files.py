"""File attachment API routes, nested under a page."""
import mimetypes
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from studynest.deps import get_attachment_manager
from studynest.errors import InvalidInput
from studynest.models.user import User
from studynest.schemas.common import MessageResponse
from studynest.schemas.file import FileDescriptor, FileUpload
from studynest.services.access_gate import require_teacher
from studynest.services.attachments import AttachmentManager

router = APIRouter(prefix="/pages/{page_name}/files", tags=["files"])


async def _read_upload(request: Request) -> tuple[str | None, str | bytes | None, str | None]:
    """Pull (name, data, content type) from a multipart form or a JSON body.

    JSON carries base64 text in ``fileData``; multipart carries raw bytes in a
    ``file`` part, with an optional ``name`` field overriding the filename.
    """
    if request.headers.get("content-type", "").startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            return None, None, None
        name = form.get("name")
        if not isinstance(name, str) or not name:
            name = upload.filename
        content_type = upload.content_type
        if not content_type and name:
            content_type = mimetypes.guess_type(name)[0]
        return name, await upload.read(), content_type

    try:
        body = FileUpload.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        raise InvalidInput("Request body must be JSON or multipart form data") from e
    return body.name, body.file_data, body.content_type


@router.post("", response_model=MessageResponse, status_code=201)
async def upload_file(
    page_name: str,
    request: Request,
    user: User = Depends(require_teacher),
    manager: AttachmentManager = Depends(get_attachment_manager),
):
    """Upload a file to a page."""
    name, data, content_type = await _read_upload(request)
    await manager.upload_file(page_name, name, data, content_type, user)
    return {"message": "File uploaded"}


@router.get("", response_model=list[FileDescriptor], response_model_exclude_none=True)
async def list_files(
    page_name: str,
    manager: AttachmentManager = Depends(get_attachment_manager),
):
    """List the files of a page."""
    return await manager.list_files(page_name)


@router.get("/{file_name}")
async def download_file(
    page_name: str,
    file_name: str,
    manager: AttachmentManager = Depends(get_attachment_manager),
):
    """Download a file's bytes."""
    data, content_type = await manager.get_file(page_name, file_name)
    return Response(
        content=data,
        media_type=content_type or "application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"},
    )


@router.delete("/{file_name}", response_model=MessageResponse)
async def delete_file(
    page_name: str,
    file_name: str,
    user: User = Depends(require_teacher),
    manager: AttachmentManager = Depends(get_attachment_manager),
):
    """Delete a single file."""
    await manager.delete_file(page_name, file_name, user)
    return {"message": "File deleted"}
