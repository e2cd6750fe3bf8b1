"""Reconciliation - joins PM and Odoo tenancy snapshots.

Usage:
    from reconciliation import reconcile, filter_rows, ViewMode

    rows = reconcile(pm_records, odoo_records)
    attention = filter_rows(rows, mode=ViewMode.HIGHLIGHTED)
"""

from reconciliation.models import (
    CombinedRow,
    ThresholdConfig,
    DEFAULT_THRESHOLDS,
    row_key,
    split_row_key,
)
from reconciliation.engine import reconcile, summarize
from reconciliation.views import (
    ViewMode,
    is_hidden_tenant,
    drop_hidden_tenants,
    filter_rows,
    display_flags,
)
from reconciliation.am_codes import AMCodeResolver, am_code_for_salesperson

__all__ = [
    "CombinedRow",
    "ThresholdConfig",
    "DEFAULT_THRESHOLDS",
    "row_key",
    "split_row_key",
    "reconcile",
    "summarize",
    "ViewMode",
    "is_hidden_tenant",
    "drop_hidden_tenants",
    "filter_rows",
    "display_flags",
    "AMCodeResolver",
    "am_code_for_salesperson",
]
