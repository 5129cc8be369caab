"""Degraded mode: hand the request to a remote differentiation service.

The payload is forwarded untouched and whatever JSON comes back is returned
as is; no contract beyond "JSON in, JSON out" is assumed.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException

from config import config

logger = logging.getLogger(__name__)


class RemoteDerivativeService:
    def __init__(self, url: str, timeout: float = 15, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def forward(self, payload: Dict[str, Any]) -> Any:
        """
        POST ``payload`` to the remote service and return the decoded JSON.

        Raises:
            HTTPException: with the upstream status on HTTP errors, 502 when
                the service is unreachable or does not answer with JSON.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"HTTP error from remote service: {e.response.status_code} - {e.response.text}"
            )
            raise HTTPException(
                status_code=e.response.status_code,
                detail={"error": "Remote service error", "details": e.response.text},
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Unexpected error from remote service: {e}")
            raise HTTPException(
                status_code=502,
                detail={"error": "Remote service error", "details": str(e)},
            )


remote_service = RemoteDerivativeService(config.REMOTE_URL, timeout=config.REMOTE_TIMEOUT)
