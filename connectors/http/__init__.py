"""HTTP ERP connector (JSON over aiohttp)."""

from connectors.http.http_connector import HttpERPConnector, parse_erp_response

__all__ = [
    "HttpERPConnector",
    "parse_erp_response",
]
