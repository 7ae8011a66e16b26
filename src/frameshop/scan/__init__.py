"""Scan Orchestrator module for frameshop.

Public API:
    ScanOrchestrator -- Single-flight scan state machine
    ScanView -- Render snapshot of the scan feature
"""

from frameshop.scan.orchestrator import (
    FAILURE_MESSAGES,
    NO_PRODUCTS_MESSAGE,
    ScanOrchestrator,
    ScanView,
)

__all__ = ["FAILURE_MESSAGES", "NO_PRODUCTS_MESSAGE", "ScanOrchestrator", "ScanView"]
