"""Sequential upload queue in front of the OCR / automation webhook.

Files are sent one at a time: the webhook answers with the id the pipeline
will give the document, and the item stays ``processing`` until a row with
that id shows up in ``ocr_processamento`` (or the polling gives up).

    waiting → sending → processing → done
                   └──────────┴────→ error
"""


import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime

import httpx
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import ServiceUnavailableError, ValidationError
from app.db.base import async_session_factory
from app.domain.document import UPLOADABLE_DOCUMENT_TYPES
from app.domain.mixins import _now, new_id
from app.repositories.document import DocumentRepository

logger = logging.getLogger(__name__)

__all__ = [
    "UploadItem",
    "UploadError",
    "ProposalWebhookClient",
    "UploadQueue",
    "document_exists",
]

# ---------------------------------------------------------------------------
# Statuses
# ---------------------------------------------------------------------------

WAITING = "waiting"
SENDING = "sending"
PROCESSING = "processing"
DONE = "done"
ERROR = "error"

TIMEOUT_MESSAGE = "Timeout ao aguardar processamento"
MISSING_ID_MESSAGE = "ID não retornado pelo webhook"
UNKNOWN_ERROR_MESSAGE = "Erro desconhecido"


@dataclass
class UploadItem:
    file_name: str
    content: bytes = field(repr=False)
    document_type: str
    content_type: str = "application/pdf"
    id: str = field(default_factory=new_id)
    status: str = WAITING
    error: str | None = None
    document_id: str | None = None
    created_at: datetime = field(default_factory=_now)
    reported: bool = False


class UploadError(Exception):
    """An upload failed; the message is shown to staff as the item's error."""

# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

class ProposalWebhookClient:
    """POSTs a PDF to the proposal webhook and returns the announced document id."""

    def __init__(
        self,
        url: str,
        timeout: float = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def send(self, item: UploadItem) -> str:
        files = {"data": (item.file_name, item.content, item.content_type)}
        form = {"tipo_documento": item.document_type}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, files=files, data=form)
        except httpx.HTTPError as exc:
            logger.warning("Webhook request for %s failed: %s", item.file_name, exc)
            raise UploadError(f"Falha ao enviar arquivo: {exc}") from exc

        if not response.is_success:
            raise UploadError(f"Erro {response.status_code}: {response.reason_phrase}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise UploadError(MISSING_ID_MESSAGE) from exc

        document_id = payload.get("id") if isinstance(payload, dict) else None
        if not document_id:
            raise UploadError(MISSING_ID_MESSAGE)
        logger.info("Webhook accepted %s as document %s", item.file_name, document_id)
        return str(document_id)


async def document_exists(document_id: str) -> bool:
    """True once the OCR pipeline has written the document row."""
    async with async_session_factory() as session:
        return await DocumentRepository(session).exists(document_id)

# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------

class UploadQueue:
    """In-memory FIFO of uploads with a single background worker."""

    def __init__(
        self,
        webhook: ProposalWebhookClient | None,
        *,
        exists: Callable[[str], Awaitable[bool]] = document_exists,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
    ):
        self._webhook = webhook
        self._exists = exists
        self._poll_interval = (
            settings.upload_poll_interval_seconds if poll_interval is None else poll_interval
        )
        self._max_attempts = (
            settings.upload_poll_max_attempts if max_attempts is None else max_attempts
        )
        self._items: list[UploadItem] = []
        self._in_flight_id: str | None = None
        self._wakeup = asyncio.Event()
        self._worker: asyncio.Task | None = None

    @classmethod
    def from_settings(cls) -> "UploadQueue":
        webhook = None
        if settings.uploads_enabled:
            webhook = ProposalWebhookClient(
                settings.proposal_webhook_url, timeout=settings.webhook_timeout
            )
        return cls(webhook)

    @property
    def enabled(self) -> bool:
        return self._webhook is not None

    # ------------------------------------------------------------------
    # Queue operations
    # ------------------------------------------------------------------

    def add_files(
        self, files: list[tuple[str, bytes, str | None]], document_type: str
    ) -> list[UploadItem]:
        """Queue ``(file_name, content, content_type)`` triples for upload."""
        if not self.enabled:
            raise ServiceUnavailableError(
                "Uploads are not available. Configure PROPOSAL_WEBHOOK_URL to enable."
            )
        if document_type not in UPLOADABLE_DOCUMENT_TYPES:
            raise ValidationError(
                f"Invalid document type '{document_type}'. "
                f"Use one of: {', '.join(UPLOADABLE_DOCUMENT_TYPES)}"
            )
        added = [
            UploadItem(
                file_name=name,
                content=content,
                document_type=document_type,
                content_type=content_type or "application/pdf",
            )
            for name, content, content_type in files
        ]
        self._items.extend(added)
        logger.info("Queued %d file(s) as %s", len(added), document_type)
        self._wakeup.set()
        return added

    def get(self, item_id: str) -> UploadItem | None:
        return next((i for i in self._items if i.id == item_id), None)

    def remove(self, item_id: str) -> bool:
        """Drop an item from the list; an upload already in flight keeps running."""
        item = self.get(item_id)
        if item is None:
            return False
        self._items.remove(item)
        return True

    def update_status(self, item_id: str, status: str, error: str | None = None) -> None:
        item = self.get(item_id)
        if item is None:
            return
        item.status = status
        item.error = error

    def clear(self) -> None:
        self._items.clear()

    def snapshot(self) -> list[UploadItem]:
        return list(self._items)

    @property
    def in_flight(self) -> bool:
        """True while an upload runs, even if its item was removed from the list."""
        return self._in_flight_id is not None

    def pop_completed(self) -> list[UploadItem]:
        """Items finished since the last call; each one is reported only once."""
        fresh = [i for i in self._items if i.status == DONE and not i.reported]
        for item in fresh:
            item.reported = True
        return fresh

    def next_waiting(self) -> UploadItem | None:
        if self.in_flight:
            return None
        return next((i for i in self._items if i.status == WAITING), None)

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def process_next(self) -> UploadItem | None:
        """Upload the oldest waiting item and wait for its document row."""
        item = self.next_waiting()
        if item is None or self._webhook is None:
            return None

        self._in_flight_id = item.id
        self.update_status(item.id, SENDING)
        try:
            item.document_id = await self._webhook.send(item)
            self.update_status(item.id, PROCESSING)
            await self._wait_for_document(item.document_id)
        except UploadError as exc:
            logger.warning("Upload of %s failed: %s", item.file_name, exc)
            self.update_status(item.id, ERROR, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error uploading %s", item.file_name)
            self.update_status(item.id, ERROR, str(exc) or UNKNOWN_ERROR_MESSAGE)
        else:
            logger.info("Upload of %s done (document %s)", item.file_name, item.document_id)
            self.update_status(item.id, DONE)
        finally:
            self._in_flight_id = None
        return item

    async def _wait_for_document(self, document_id: str) -> None:
        for attempt in range(1, self._max_attempts + 1):
            try:
                if await self._exists(document_id):
                    return
            except SQLAlchemyError as exc:
                raise UploadError(f"Erro ao consultar documentos: {exc}") from exc
            logger.debug("Document %s not there yet (attempt %d)", document_id, attempt)
            await asyncio.sleep(self._poll_interval)
        raise UploadError(TIMEOUT_MESSAGE)

    # ------------------------------------------------------------------
    # Background worker
    # ------------------------------------------------------------------

    async def run(self) -> None:
        while True:
            try:
                item = await self.process_next()
            except Exception:
                logger.exception("Upload queue worker failed; retrying")
                await asyncio.sleep(self._poll_interval)
                continue
            if item is None:
                self._wakeup.clear()
                if self.next_waiting() is None:
                    await self._wakeup.wait()

    def start(self) -> None:
        if self.enabled and (self._worker is None or self._worker.done()):
            self._worker = asyncio.create_task(self.run(), name="upload-queue")
            logger.info("Upload queue worker started")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        with suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        logger.info("Upload queue worker stopped")
