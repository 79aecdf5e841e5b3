"""Abstract ERP Connector Interface.

This module defines the interface every ERP transport implements. It is
intentionally ERP-agnostic: the integration tracker depends only on
``send_order`` and never on a concrete ERP.

Connectors implement this interface to:
1. Open and close whatever session their transport needs
2. Deliver an order snapshot to the ERP
3. Report the ERP's business answer as an ERPSendResult

Business rejections are returned (``success=False``). Only transport
failures (unreachable host, timeout, 5xx) raise IntegrationTransportError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.config import Settings


# =============================================================================
# Enums
# =============================================================================

class ERPConnectionStatus(str, Enum):
    """Connection status to ERP system."""
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"


# =============================================================================
# Configuration and Results
# =============================================================================

@dataclass
class ERPConfig:
    """Configuration for an ERP connector.

    Generic configuration that can be extended by specific connectors.
    """
    connector_type: str                     # "simulator", "http"
    base_url: Optional[str] = None          # ERP API endpoint
    timeout_seconds: float = 30.0           # Transport timeout per send

    # Authentication (connector-specific)
    auth_config: Dict[str, Any] = field(default_factory=dict)

    # Connector-specific settings
    custom_settings: Dict[str, Any] = field(default_factory=dict)


class ERPSendResult(BaseModel):
    """Normalized answer of the ERP to one order delivery."""
    success: bool = Field(..., description="ERP accepted the order")
    message: Optional[str] = Field(default=None, description="Human-readable ERP message")
    erp_reference: Optional[str] = Field(default=None, description="ERP document reference on success")


def erp_config_from_settings(settings: Settings) -> ERPConfig:
    """Build the connector configuration from service settings."""
    return ERPConfig(
        connector_type=settings.erp_connector,
        base_url=settings.erp_base_url,
        timeout_seconds=settings.erp_timeout_seconds,
        auth_config={"api_key": settings.erp_api_key} if settings.erp_api_key else {},
        custom_settings={
            "simulation_mode": settings.erp_simulation_mode,
            "failure_rate": settings.erp_failure_rate,
            "min_latency_ms": settings.erp_min_latency_ms,
            "max_latency_ms": settings.erp_max_latency_ms,
            "force_fail_order_numbers": list(settings.erp_force_fail),
            "force_success_order_numbers": list(settings.erp_force_success),
        },
    )


# =============================================================================
# Abstract Connector Interface
# =============================================================================

class ERPConnector(ABC):
    """Abstract base class for ERP connectors.

    Implementations:
    - connectors/simulator/erp_simulator.py
    - connectors/http/http_connector.py
    """

    def __init__(self, config: ERPConfig):
        """Initialize connector with configuration."""
        self.config = config
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    # =========================================================================
    # Connection Management
    # =========================================================================

    async def connect(self) -> bool:
        """Prepare the transport. Connectors without sessions just flip status."""
        self._connection_status = ERPConnectionStatus.CONNECTED
        return True

    async def disconnect(self) -> None:
        """Release the transport."""
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    @property
    def connection_status(self) -> ERPConnectionStatus:
        """Get current connection status."""
        return self._connection_status

    # =========================================================================
    # Order Delivery
    # =========================================================================

    @abstractmethod
    async def send_order(self, order_number: str, payload: str) -> ERPSendResult:
        """Deliver an order snapshot to the ERP.

        Args:
            order_number: Human-readable order number
            payload: JSON snapshot of the order

        Returns:
            ERPSendResult with the ERP's business answer

        Raises:
            IntegrationTransportError: The ERP could not be reached
        """
        pass

    # -------------------------------------------------------------------------
    # Utilities
    # -------------------------------------------------------------------------

    def get_connector_name(self) -> str:
        """Get the name of this connector."""
        return self.config.connector_type


# =============================================================================
# Connector Factory
# =============================================================================

_connector_registry: Dict[str, type] = {}


def register_connector(connector_type: str):
    """Decorator to register a connector implementation."""
    def decorator(cls):
        _connector_registry[connector_type] = cls
        return cls
    return decorator


def create_connector(config: ERPConfig) -> ERPConnector:
    """Create a connector instance from configuration.

    Args:
        config: ERPConfig with connector_type specified

    Returns:
        Configured connector instance

    Raises:
        ValueError: If connector_type is not registered
    """
    connector_type = config.connector_type.lower()

    if connector_type not in _connector_registry:
        available = list(_connector_registry.keys())
        raise ValueError(
            f"Unknown connector type: {connector_type}. "
            f"Available: {available}"
        )

    connector_class = _connector_registry[connector_type]
    return connector_class(config)


def list_available_connectors() -> List[str]:
    """List all registered connector types."""
    return list(_connector_registry.keys())
