"""HTTP ERP Connector.

Posts the order snapshot to ``{base_url}/orders`` and maps the response:

- 2xx with JSON ``{success, message, reference}`` -> ERPSendResult
- 4xx -> failed ERPSendResult carrying the response text
- 5xx, connection errors, timeouts -> IntegrationTransportError

No retries are attempted; a failed transport leaves the attempt in Sent.
"""

import asyncio
import json
from typing import Dict, Optional

import aiohttp

from connectors.erp_base import (
    ERPConfig,
    ERPConnectionStatus,
    ERPConnector,
    ERPSendResult,
    register_connector,
)
from core.errors import IntegrationTransportError
from core.observability.logging import get_correlation_id, get_logger


logger = get_logger(__name__)


def parse_erp_response(status: int, response_text: str, order_number: str) -> ERPSendResult:
    """Map an ERP HTTP response to a send result.

    Raises:
        IntegrationTransportError: On 5xx or an unreadable 2xx body
    """
    if status >= 500:
        raise IntegrationTransportError(
            f"ERP returned {status} for order '{order_number}': {response_text}",
            order_number=order_number,
        )

    if status >= 400:
        return ERPSendResult(
            success=False,
            message=f"ERP rejected the order ({status}): {response_text}".strip(),
        )

    try:
        body = json.loads(response_text) if response_text else {}
    except ValueError as exc:
        raise IntegrationTransportError(
            f"ERP returned an invalid JSON body for order '{order_number}'",
            order_number=order_number,
        ) from exc

    success = bool(body.get("success", True))
    return ERPSendResult(
        success=success,
        message=body.get("message"),
        erp_reference=(body.get("reference") or body.get("erp_reference")) if success else None,
    )


@register_connector("http")
class HttpERPConnector(ERPConnector):
    """ERP connector that talks JSON over HTTP."""

    def __init__(self, config: ERPConfig):
        super().__init__(config)
        if not config.base_url:
            raise ValueError("HTTP ERP connector requires base_url (ERP_BASE_URL)")
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def orders_url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/orders"

    def _get_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        api_key = self.config.auth_config.get("api_key")
        if api_key:
            headers["X-API-KEY"] = api_key
        correlation_id = get_correlation_id()
        if correlation_id:
            headers["X-Correlation-Id"] = correlation_id
        return headers

    async def connect(self) -> bool:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        self._connection_status = ERPConnectionStatus.CONNECTED
        return True

    async def disconnect(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    async def send_order(self, order_number: str, payload: str) -> ERPSendResult:
        """POST the order payload to the ERP.

        Raises:
            IntegrationTransportError: Unreachable ERP, timeout or 5xx
        """
        if self._session is None or self._session.closed:
            await self.connect()

        try:
            async with self._session.post(
                self.orders_url,
                data=payload.encode("utf-8"),
                headers=self._get_headers(),
            ) as response:
                response_text = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning(
                f"ERP request failed for order {order_number}: {type(exc).__name__}: {exc}"
            )
            raise IntegrationTransportError(
                f"ERP request failed for order '{order_number}': {exc}",
                order_number=order_number,
            ) from exc

        logger.info(
            f"ERP responded {status} for order {order_number}",
            extra_fields={"status_code": status},
        )
        return parse_erp_response(status, response_text, order_number)
