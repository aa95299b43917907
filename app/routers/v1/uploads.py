"""Upload queue router — queue proposal/policy PDFs for the OCR webhook."""

from __future__ import annotations

from fastapi import APIRouter, File, Form, Request, UploadFile, status

from app.core.exceptions import NotFoundError
from app.core.response import DataResponse
from app.schemas.upload import UploadItemOut, UploadQueueOut
from app.services.parser import validate_pdf_upload
from app.services.upload_queue import UploadQueue

router = APIRouter(prefix="/uploads", tags=["Uploads"])


def _queue(request: Request) -> UploadQueue:
    return request.app.state.upload_queue


def _queue_out(queue: UploadQueue, completed=()) -> UploadQueueOut:
    return UploadQueueOut(
        items=[UploadItemOut.model_validate(i) for i in queue.snapshot()],
        in_flight=queue.in_flight,
        completed=[UploadItemOut.model_validate(i) for i in completed],
    )


@router.post("", response_model=DataResponse[list[UploadItemOut]], status_code=status.HTTP_202_ACCEPTED)
async def queue_files(
    request: Request,
    files: list[UploadFile] = File(...),
    document_type: str = Form(default="proposta", alias="tipo_documento"),
):
    """Queue one or more PDFs; they are sent to the webhook one at a time."""
    accepted: list[tuple[str, bytes, str | None]] = []
    for upload in files:
        contents = await upload.read()
        validate_pdf_upload(upload.filename, upload.content_type, contents)
        accepted.append((upload.filename or "arquivo.pdf", contents, upload.content_type))

    items = _queue(request).add_files(accepted, document_type)
    return {"data": [UploadItemOut.model_validate(i) for i in items]}


@router.get("", response_model=DataResponse[UploadQueueOut])
async def get_queue(request: Request):
    """Current queue; items finished since the last call are listed once under ``completed``."""
    queue = _queue(request)
    return {"data": _queue_out(queue, queue.pop_completed())}


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_item(item_id: str, request: Request):
    if not _queue(request).remove(item_id):
        raise NotFoundError("Upload", item_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_queue(request: Request):
    _queue(request).clear()
