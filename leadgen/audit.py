import asyncio
import logging
from typing import Any, Dict, Optional, Set

import httpx

from leadgen.models.state import GenerationRequest

logger = logging.getLogger(__name__)


class AuditLogClient:
    """
    Posts {request parameters, generatedLeadsCount} to a remote audit endpoint.

    Posting is fire-and-forget: failures are logged and never retried or
    raised to the caller.
    """

    def __init__(
        self,
        url: Optional[str],
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport
        self._pending: Set[asyncio.Task] = set()

    @staticmethod
    def build_payload(request: GenerationRequest, lead_count: int) -> Dict[str, Any]:
        payload = request.model_dump(mode="json", by_alias=True)
        payload["generatedLeadsCount"] = lead_count
        return payload

    async def send(self, payload: Dict[str, Any]) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Failed to write to audit log endpoint {self.url}: {e}")
            return False
        logger.info(f"Logged generation of {payload.get('generatedLeadsCount')} leads to {self.url}")
        return True

    def log_generation(self, request: GenerationRequest, lead_count: int) -> Optional[asyncio.Task]:
        """Schedule the POST on the running loop and return without waiting for it."""
        if not self.url:
            logger.debug("No audit log URL configured, skipping remote audit log")
            return None

        task = asyncio.create_task(self.send(self.build_payload(request, lead_count)))
        # keep a reference until the task finishes
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for scheduled posts; used on shutdown and in tests."""
        if self._pending:
            results = await asyncio.gather(*self._pending, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Audit log post failed: {result}")
