from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from skola_media.application.interfaces.cloud_functions import ICloudFunctionClient
from skola_media.core.config import BackendConfig
from skola_media.core.exceptions import CloudFunctionError


logger = logging.getLogger(__name__)


class ParseCloudFunctionClient(ICloudFunctionClient):
    """Runs Parse Server cloud functions over its REST API.

    ``POST {server_url}/functions/{name}`` with the app id / client key
    headers; the function's return value comes back as ``{"result": ...}``.
    Timeouts are raised as ``asyncio.TimeoutError`` so callers can tell them
    apart from other failures.
    """

    def __init__(
        self,
        config: BackendConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.config = config
        self._session = session

    def _headers(self) -> Dict[str, str]:
        headers = {
            "X-Parse-Application-Id": self.config.app_id,
            "Content-Type": "application/json",
        }
        if self.config.client_key:
            headers["X-Parse-Javascript-Key"] = self.config.client_key
        if self.config.session_token:
            headers["X-Parse-Session-Token"] = self.config.session_token
        return headers

    async def run(
        self,
        name: str,
        params: Dict[str, Any],
        *,
        timeout: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        url = f"{self.config.functions_url}/{name}"
        client_timeout = aiohttp.ClientTimeout(total=timeout)

        if self._session is not None:
            return await self._post(self._session, name, url, params, client_timeout)
        async with aiohttp.ClientSession() as session:
            return await self._post(session, name, url, params, client_timeout)

    async def _post(
        self,
        session: aiohttp.ClientSession,
        name: str,
        url: str,
        params: Dict[str, Any],
        client_timeout: aiohttp.ClientTimeout,
    ) -> Optional[Dict[str, Any]]:
        try:
            async with session.post(
                url, json=params, headers=self._headers(), timeout=client_timeout
            ) as response:
                body_text = await response.text()
                status = response.status
        except asyncio.TimeoutError:
            logger.warning("Cloud function %s timed out", name)
            raise
        except aiohttp.ClientError as e:
            logger.error("Cloud function %s transport error: %s", name, e)
            raise CloudFunctionError(
                f"Cloud function {name} failed: {e}", function_name=name
            ) from e

        try:
            body = json.loads(body_text) if body_text else {}
        except ValueError as e:
            raise CloudFunctionError(
                f"Cloud function {name} returned invalid JSON (HTTP {status})",
                function_name=name,
                status=status,
            ) from e

        if status >= 400 or (isinstance(body, dict) and "error" in body and "result" not in body):
            code = body.get("code") if isinstance(body, dict) else None
            message = body.get("error") if isinstance(body, dict) else body_text
            logger.error(
                "Cloud function %s failed: HTTP %s code=%s %s", name, status, code, message
            )
            raise CloudFunctionError(
                f"Cloud function {name} failed: {message or f'HTTP {status}'}",
                function_name=name,
                code=code,
                status=status,
            )

        result = body.get("result") if isinstance(body, dict) else None
        if result is None:
            logger.warning("Cloud function %s returned no result", name)
            return None
        if not isinstance(result, dict):
            raise CloudFunctionError(
                f"Cloud function {name} returned an unexpected result type",
                function_name=name,
                status=status,
            )
        return result
