"""Markup compliance, accessibility and performance analyzers."""

from emailqa.analyzers.accessibility import AccessibilityAnalyzer
from emailqa.analyzers.compliance import ComplianceAnalyzer
from emailqa.analyzers.performance import PerformanceAnalyzer

__all__ = ["AccessibilityAnalyzer", "ComplianceAnalyzer", "PerformanceAnalyzer"]
