"""Upload queue schemas."""


from datetime import datetime

from app.schemas.common import CamelModel


class UploadItemOut(CamelModel):
    id: str
    file_name: str
    document_type: str
    status: str  # waiting | sending | processing | done | error
    error: str | None = None
    document_id: str | None = None
    created_at: datetime


class UploadQueueOut(CamelModel):
    items: list[UploadItemOut]
    in_flight: bool
    completed: list[UploadItemOut] = []
