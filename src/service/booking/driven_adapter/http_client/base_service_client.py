"""
Shared plumbing for the internal service clients.

Every failure mode of a remote call (transport error, non-2xx status, a body
that is not JSON) surfaces as ``UpstreamServiceError`` tagged with the service.
"""

from typing import Any, Optional

import httpx
import orjson

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import UpstreamServiceError
from src.platform.logging.loguru_io import Logger


class BaseServiceClient:
    service_name: str = 'unknown'

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = settings.HTTP_CLIENT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            Logger.base.error(f'🌐 [{self.service_name.upper()}] {method} {path} failed: {e}')
            raise UpstreamServiceError(
                f'{self.service_name} service unreachable: {type(e).__name__}: {e}',
                service=self.service_name,
            ) from e

        if response.is_error:
            Logger.base.error(
                f'🌐 [{self.service_name.upper()}] {method} {path} -> {response.status_code}'
            )
            raise UpstreamServiceError(
                f'{self.service_name} service returned {response.status_code} for {method} {path}',
                service=self.service_name,
            )

        if not response.content:
            return None

        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise UpstreamServiceError(
                f'{self.service_name} service returned invalid JSON for {method} {path}',
                service=self.service_name,
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()
