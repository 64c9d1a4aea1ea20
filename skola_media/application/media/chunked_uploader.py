"""
Multipart upload of large videos.

A file is split into fixed-size parts that are sent one at a time, in order,
each as a base64 data URL. Every part gets its own retry budget with
exponential backoff; an exhausted budget fails the whole upload and the
remote session is aborted so no orphaned parts are left behind.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Awaitable, Callable, Optional, Union

import aiofiles
from pydantic import ValidationError

from skola_media.application.interfaces.progress import IProgressObserver
from skola_media.application.interfaces.storage_proxy import IStorageProxy
from skola_media.application.media.uri_normalizer import UriNormalizer
from skola_media.application.models import (
    CompletedPart,
    MultipartUploadResult,
    SessionState,
    UploadProgress,
    UploadSession,
)
from skola_media.core.config import settings
from skola_media.core.exceptions import (
    ChunkUploadError,
    CloudFunctionError,
    FileAccessError,
    UploadCancelledError,
    UploadError,
)
from skola_media.core.messages import get_error_message
from skola_media.core.pyd_schemas import (
    ApiResponse,
    CompleteMultipartData,
    InitiateMultipartData,
    UploadPartData,
)
from media_utils.file_utils import encode_base64, to_data_url, uri_to_path


logger = logging.getLogger(__name__)

ProgressSink = Union[IProgressObserver, Callable[[UploadProgress], None]]


def progress_percent(completed: int, total: int) -> int:
    """Whole percent of ``completed`` over ``total``, rounded half up."""
    if total <= 0:
        return 0
    return (completed * 200 + total) // (2 * total)


class ChunkedUploadOrchestrator:
    def __init__(
        self,
        storage: IStorageProxy,
        normalizer: UriNormalizer,
        *,
        chunk_size: Optional[int] = None,
        max_attempts: Optional[int] = None,
        backoff_base: Optional[float] = None,
        abort_on_failure: Optional[bool] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.storage = storage
        self.normalizer = normalizer
        self.chunk_size = chunk_size or settings.chunk_size_bytes
        self.max_attempts = max_attempts or settings.chunk_max_attempts
        self.backoff_base = (
            backoff_base if backoff_base is not None else settings.chunk_backoff_base
        )
        self.abort_on_failure = (
            abort_on_failure if abort_on_failure is not None else settings.abort_on_failure
        )
        self._sleep = sleep

    async def upload(
        self,
        object_key: str,
        local_uri: str,
        content_type: str = "video/mp4",
        *,
        progress: Optional[ProgressSink] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> MultipartUploadResult:
        local_path = await self.normalizer.normalize(local_uri, object_id=object_key)
        copied = local_path != local_uri
        try:
            size = await self.normalizer.accessor_for(local_path).size(local_path)
            if size < 0:
                raise FileAccessError("File not found", path=local_path)
            if size == 0:
                raise FileAccessError("File is empty", path=local_path)

            session = UploadSession(
                object_key=object_key,
                content_type=content_type,
                total_chunks=math.ceil(size / self.chunk_size),
            )
            logger.info(
                "Starting multipart upload of %s: %d bytes in %d parts",
                object_key,
                size,
                session.total_chunks,
            )
            return await self._run_session(
                session, local_path, size, progress, cancel_event
            )
        finally:
            if copied:
                await self.normalizer.cleanup(local_path)

    async def _run_session(
        self,
        session: UploadSession,
        local_path: str,
        size: int,
        progress: Optional[ProgressSink],
        cancel_event: Optional[asyncio.Event],
    ) -> MultipartUploadResult:
        try:
            await self._initiate(session)
        except BaseException:
            session.transition(SessionState.FAILED)
            raise

        try:
            await self._upload_parts(session, local_path, progress, cancel_event)
            location = await self._complete(session)
        except BaseException as exc:
            await self._fail(session, exc)
            raise

        logger.info("Multipart upload of %s completed", session.object_key)
        return MultipartUploadResult(
            object_key=session.object_key,
            upload_id=session.upload_id or "",
            byte_size=size,
            parts=session.ordered_parts(),
            location=location,
        )

    async def _initiate(self, session: UploadSession) -> None:
        response = await self._call(
            self.storage.initiate_multipart_upload(session.object_key, session.content_type),
            settings.session_call_timeout,
            session.object_key,
            "initiate",
        )
        data = self._data_or_raise(response, InitiateMultipartData, session.object_key)
        session.upload_id = data.upload_id
        session.transition(SessionState.INITIATED)
        logger.debug("Multipart session %s opened for %s", data.upload_id, session.object_key)

    async def _upload_parts(
        self,
        session: UploadSession,
        local_path: str,
        progress: Optional[ProgressSink],
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        session.transition(SessionState.UPLOADING_PARTS)
        async with aiofiles.open(uri_to_path(local_path), "rb") as f:
            for part_number in range(1, session.total_chunks + 1):
                self._check_cancelled(session, part_number, cancel_event)
                await f.seek((part_number - 1) * self.chunk_size)
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    raise FileAccessError(
                        f"Unexpected end of file at part {part_number}", path=local_path
                    )
                payload = to_data_url(session.content_type, encode_base64(chunk))

                part = await self._upload_part(session, part_number, payload, cancel_event)
                session.record_part(part)
                session.transition(SessionState.UPLOADING_PARTS)
                self._notify(progress, session)

    async def _upload_part(
        self,
        session: UploadSession,
        part_number: int,
        payload: str,
        cancel_event: Optional[asyncio.Event],
    ) -> CompletedPart:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            self._check_cancelled(session, part_number, cancel_event)
            try:
                response = await self._call(
                    self.storage.upload_part(
                        session.object_key,
                        session.upload_id,
                        part_number,
                        payload,
                        session.content_type,
                    ),
                    settings.chunk_upload_timeout,
                    session.object_key,
                    f"part {part_number}",
                )
                data = self._data_or_raise(response, UploadPartData, session.object_key)
                if data.part_number != part_number:
                    logger.warning(
                        "Server acknowledged part %d as %d; keeping %d",
                        part_number,
                        data.part_number,
                        part_number,
                    )
                return CompletedPart(part_number=part_number, etag=data.etag)
            except UploadCancelledError:
                raise
            except Exception as e:  # noqa: BLE001
                last_error = e
                logger.warning(
                    "Part %d of %s failed (attempt %d/%d): %s",
                    part_number,
                    session.object_key,
                    attempt,
                    self.max_attempts,
                    e,
                )
                if attempt < self.max_attempts:
                    await self._backoff(self.backoff_base ** attempt, cancel_event)

        raise ChunkUploadError(
            part_number,
            object_key=session.object_key,
            attempts=self.max_attempts,
            last_error=last_error,
        )

    async def _complete(self, session: UploadSession) -> Optional[str]:
        parts = [
            {"PartNumber": p.part_number, "ETag": p.etag} for p in session.ordered_parts()
        ]
        try:
            response = await self._call(
                self.storage.complete_multipart_upload(
                    session.object_key, session.upload_id, parts
                ),
                settings.session_call_timeout,
                session.object_key,
                "complete",
            )
            data = self._data_or_raise(response, CompleteMultipartData, session.object_key)
        except UploadError as e:
            raise UploadError(
                f"Could not complete upload, retry the whole upload: {e.reason}",
                object_key=session.object_key,
                error_code=e.error_code,
            ) from e
        session.transition(SessionState.COMPLETED)
        return data.location

    async def _fail(self, session: UploadSession, exc: BaseException) -> None:
        logger.error("Multipart upload of %s failed: %s", session.object_key, exc)
        if session.state in (SessionState.FAILED, SessionState.ABORTED):
            return
        session.transition(SessionState.FAILED)
        if not (self.abort_on_failure and session.upload_id):
            return
        try:
            response = await asyncio.wait_for(
                self.storage.abort_multipart_upload(session.object_key, session.upload_id),
                timeout=settings.session_call_timeout,
            )
        except Exception as e:  # noqa: BLE001
            logger.warning("Abort of %s failed: %s", session.upload_id, e)
            return
        if response is not None and response.success:
            session.transition(SessionState.ABORTED)
            logger.info("Aborted multipart session %s", session.upload_id)
        else:
            logger.warning(
                "Abort of %s rejected: %s",
                session.upload_id,
                response.error_code if response else "no response",
            )

    async def _call(
        self, call: Awaitable, timeout: float, object_key: str, what: str
    ) -> Optional[ApiResponse]:
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise UploadError(
                f"Multipart {what} timeout after {timeout}s", object_key=object_key
            ) from e
        except CloudFunctionError as e:
            raise UploadError(str(e), object_key=object_key) from e

    @staticmethod
    def _data_or_raise(response: Optional[ApiResponse], model, object_key: str):
        if response is None:
            raise UploadError(get_error_message(None), object_key=object_key)
        if not response.success:
            code = response.error_code
            message = response.error.message if response.error else None
            raise UploadError(
                get_error_message(code, message), object_key=object_key, error_code=code
            )
        try:
            return model.model_validate(response.data or {})
        except ValidationError as e:
            raise UploadError(
                f"Malformed response from server: {e.error_count()} errors",
                object_key=object_key,
            ) from e

    @staticmethod
    def _check_cancelled(
        session: UploadSession, part_number: int, cancel_event: Optional[asyncio.Event]
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise UploadCancelledError(session.object_key, part_number)

    async def _backoff(self, delay: float, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is None:
            await self._sleep(delay)
            return
        if cancel_event.is_set():
            return
        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()

    @staticmethod
    def _notify(progress: Optional[ProgressSink], session: UploadSession) -> None:
        if progress is None:
            return
        event = UploadProgress(
            object_key=session.object_key,
            completed_chunks=session.completed_chunks,
            total_chunks=session.total_chunks,
            percent=progress_percent(session.completed_chunks, session.total_chunks),
        )
        try:
            if isinstance(progress, IProgressObserver):
                progress.on_progress(event)
            else:
                progress(event)
        except Exception as e:  # noqa: BLE001
            logger.warning("Progress observer raised: %s", e)
