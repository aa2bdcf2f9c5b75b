"""
Panel Grader - title-defense grading for thesis panels.

This package tracks proponent groups, assigns two panel evaluators per
group, collects weighted rubric scores from each panel and aggregates
them into final scores, lifecycle statuses and pass/fail remarks.
"""

__version__ = "1.0.0"
__author__ = "Panel Grader Team"
