from __future__ import annotations

from typing import Protocol, runtime_checkable

from skola_media.application.models import UploadProgress


@runtime_checkable
class IProgressObserver(Protocol):
    """Receives progress events from a chunked upload."""

    def on_progress(self, event: UploadProgress) -> None:
        ...
