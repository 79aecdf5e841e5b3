"""ERP Connectors - Pluggable ERP transports.

This package contains the abstract ERP interface and the concrete transports.
The integration tracker depends only on ``send_order``.

To add a new ERP:
1. Create a new folder (e.g., sap/)
2. Implement ERPConnector.send_order
3. Register using @register_connector decorator
4. Import the module here so the registration runs
"""

from connectors.erp_base import (
    ERPConfig,
    ERPConnectionStatus,
    ERPConnector,
    ERPSendResult,
    create_connector,
    erp_config_from_settings,
    list_available_connectors,
    register_connector,
)

# Imported for their @register_connector side effect
from connectors.simulator import SimulatorConnector
from connectors.http import HttpERPConnector

__all__ = [
    "ERPConfig",
    "ERPConnectionStatus",
    "ERPConnector",
    "ERPSendResult",
    "HttpERPConnector",
    "SimulatorConnector",
    "create_connector",
    "erp_config_from_settings",
    "list_available_connectors",
    "register_connector",
]
