"""Core module - order lifecycle, ERP integration tracking and audit trail.

This module contains the order state machine, the Order aggregate, the
integration attempt tracker and the audit recorder. It is intentionally
storage- and transport-agnostic: stores and ERP senders are passed in.

ERP-specific transport logic belongs in /connectors/, persistence in /storage/.
"""

__version__ = "1.0.0"
