"""Calculs purs : cotisations, budget, indicateurs."""

from __future__ import annotations

from pantheres_finance.engine.budget import (
    compute_budget_percentage,
    compute_budget_status,
    enrich_budget_lines,
)
from pantheres_finance.engine.cotisations import (
    compute_elapsed_months,
    compute_percentage_paid,
    compute_remaining,
    compute_status,
    compute_total_due,
    derive_cotisation,
)
from pantheres_finance.engine.kpis import compute_kpis, running_balances

__all__ = [
    "compute_budget_percentage",
    "compute_budget_status",
    "compute_elapsed_months",
    "compute_kpis",
    "compute_percentage_paid",
    "compute_remaining",
    "compute_status",
    "compute_total_due",
    "derive_cotisation",
    "enrich_budget_lines",
    "running_balances",
]
