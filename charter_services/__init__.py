"""
charter_services -- imperative shell around the reconciliation engines.

Services validate input shapes, parse raw records, inject settings and
the clock, and delegate every computation to ``charter_engines``.
"""

from charter_services.reconciliation_service import ReconciliationService

__all__ = ["ReconciliationService"]
