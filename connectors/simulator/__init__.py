"""In-process ERP simulator connector."""

from connectors.simulator.erp_simulator import (
    FAILURE_MESSAGES,
    SimulationMode,
    SimulatorSettings,
    SimulatorConnector,
)

__all__ = [
    "FAILURE_MESSAGES",
    "SimulationMode",
    "SimulatorSettings",
    "SimulatorConnector",
]
