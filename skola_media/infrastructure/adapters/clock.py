from __future__ import annotations

import datetime as _dt

from skola_media.application.interfaces.utils import IClock


class SystemClock(IClock):
    def now(self) -> _dt.datetime:
        return _dt.datetime.now(_dt.timezone.utc)
