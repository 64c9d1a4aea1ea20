from __future__ import annotations
from typing import Any, Dict, Optional, Protocol


class ICloudFunctionClient(Protocol):
    """Runs named backend cloud functions (remote procedure calls)."""

    async def run(
        self,
        name: str,
        params: Dict[str, Any],
        *,
        timeout: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """Invoke ``name`` with ``params`` and return its decoded result.

        Returns None when the backend answered without a result.
        """
        ...
