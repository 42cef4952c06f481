"""
Grading Anomalies - statistical review of completed grading rounds.

This package analyzes the graded submissions of one assignment and
reports grader severity bias, outlier scores, inconsistently applied
rubric criteria, and per-submission regrade risk.
"""

__version__ = "1.0.0"
__author__ = "Grading Anomalies Team"
