"""ERP Simulator Connector.

Stands in for a real ERP during development and tests. It waits a random
latency, then accepts or rejects the order according to the configured mode
and the forced order-number patterns.

Decision order:
1. order number contains a force-fail pattern    -> fail
2. order number contains a force-success pattern -> succeed
3. AlwaysSucceed / AlwaysFail / Random(failure_rate)
"""

import asyncio
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from connectors.erp_base import ERPConfig, ERPConnector, ERPSendResult, register_connector
from core.errors import IntegrationTransportError
from core.observability.logging import get_logger
from core.timeutil import utc_now


logger = get_logger(__name__)


FAILURE_MESSAGES = (
    "ERP temporarily unavailable. Please try again.",
    "Connection error with the ERP server.",
    "Timeout while processing the order in the ERP.",
    "The ERP rejected the order during internal validation.",
)

SUCCESS_MESSAGE = "Order received by ERP."


class SimulationMode(str, Enum):
    """How the simulator decides the outcome of unforced orders."""
    ALWAYS_SUCCEED = "AlwaysSucceed"
    ALWAYS_FAIL = "AlwaysFail"
    RANDOM = "Random"

    @classmethod
    def from_text(cls, value: str) -> "SimulationMode":
        """Case-insensitive lookup; unknown text falls back to Random."""
        text = (value or "").strip().lower()
        for mode in cls:
            if mode.value.lower() == text or mode.name.lower() == text:
                return mode
        return cls.RANDOM


@dataclass
class SimulatorSettings:
    """Knobs of the ERP simulator."""
    simulation_mode: SimulationMode = SimulationMode.RANDOM
    failure_rate: float = 0.1
    min_latency_ms: int = 100
    max_latency_ms: int = 500
    force_fail_order_numbers: List[str] = field(default_factory=list)
    force_success_order_numbers: List[str] = field(default_factory=list)

    @classmethod
    def from_custom_settings(cls, custom: Dict[str, Any]) -> "SimulatorSettings":
        """Read simulator settings from ERPConfig.custom_settings."""
        min_latency = int(custom.get("min_latency_ms", 100))
        max_latency = int(custom.get("max_latency_ms", 500))
        return cls(
            simulation_mode=SimulationMode.from_text(custom.get("simulation_mode", "Random")),
            failure_rate=min(max(float(custom.get("failure_rate", 0.1)), 0.0), 1.0),
            min_latency_ms=max(0, min_latency),
            max_latency_ms=max(min_latency, max_latency),
            force_fail_order_numbers=list(custom.get("force_fail_order_numbers", [])),
            force_success_order_numbers=list(custom.get("force_success_order_numbers", [])),
        )


@register_connector("simulator")
class SimulatorConnector(ERPConnector):
    """ERP connector that simulates latency and outcomes locally."""

    def __init__(self, config: ERPConfig, rng: Optional[random.Random] = None):
        super().__init__(config)
        self.settings = SimulatorSettings.from_custom_settings(config.custom_settings)
        self._rng = rng or random.Random()

    async def send_order(self, order_number: str, payload: str) -> ERPSendResult:
        """Simulate delivering an order.

        Raises:
            IntegrationTransportError: Simulated latency exceeds the timeout
        """
        logger.info(
            f"Simulating ERP send for order {order_number}",
            extra_fields={"mode": self.settings.simulation_mode.value},
        )

        delay_ms = self._rng.randint(self.settings.min_latency_ms, self.settings.max_latency_ms)
        timeout_s = self.config.timeout_seconds
        if timeout_s and delay_ms / 1000.0 > timeout_s:
            await asyncio.sleep(timeout_s)
            raise IntegrationTransportError(
                f"ERP simulator timed out after {timeout_s}s for order '{order_number}'",
                order_number=order_number,
            )
        if delay_ms:
            await asyncio.sleep(delay_ms / 1000.0)

        if self.should_fail(order_number):
            message = self._rng.choice(FAILURE_MESSAGES)
            logger.warning(
                f"Simulated ERP failure for order {order_number}",
                extra_fields={"erp_message": message},
            )
            return ERPSendResult(success=False, message=message)

        reference = f"ERP-{utc_now():%Y%m%d}-{self._rng.randint(10000, 99999)}"
        logger.info(
            f"Order {order_number} accepted by simulated ERP",
            extra_fields={"erp_reference": reference},
        )
        return ERPSendResult(success=True, message=SUCCESS_MESSAGE, erp_reference=reference)

    def should_fail(self, order_number: str) -> bool:
        """Decide the outcome for an order number (see module docstring)."""
        number = order_number.lower()
        if any(p.lower() in number for p in self.settings.force_fail_order_numbers if p):
            return True
        if any(p.lower() in number for p in self.settings.force_success_order_numbers if p):
            return False

        mode = self.settings.simulation_mode
        if mode == SimulationMode.ALWAYS_SUCCEED:
            return False
        if mode == SimulationMode.ALWAYS_FAIL:
            return True
        return self._rng.random() < self.settings.failure_rate
