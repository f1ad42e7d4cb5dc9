"""Contracts for collaborators that live outside spikeforge."""

from spikeforge.contracts.analysis import AnalysisIssue, IssueSeverity, StaticAnalyzer

__all__ = ["AnalysisIssue", "IssueSeverity", "StaticAnalyzer"]
