"""Gap planning, store population and validation."""

from marketdata.populate.orchestrator import PopulateReport, populate, populate_symbol
from marketdata.populate.planner import DEFAULT_MAX_SPAN, plan
from marketdata.populate.validator import ValidationIssue, validate_store

__all__ = [
    "DEFAULT_MAX_SPAN",
    "PopulateReport",
    "ValidationIssue",
    "plan",
    "populate",
    "populate_symbol",
    "validate_store",
]
