"""
Grading Module.

Aggregation core (weighted sub-totals, final scores, pass/fail) and the
workflow that records panel grades.
"""

from panelgrade.grading.aggregator import aggregate, weighted_portion
from panelgrade.grading.classifier import classify, remark_for
from panelgrade.grading.finalizer import finalize
from panelgrade.grading.policy import DEFAULT_POLICY, GradingPolicy
from panelgrade.grading.workflow import GradingWorkflow, panel_slot
from panelgrade.status import GradeSheetStatus, derive_status

__all__ = [
    "DEFAULT_POLICY",
    "GradeSheetStatus",
    "GradingPolicy",
    "GradingWorkflow",
    "aggregate",
    "classify",
    "derive_status",
    "finalize",
    "panel_slot",
    "remark_for",
    "weighted_portion",
]
