"""Diagnostic test: learning-style classification and the submission flow."""

from satprep.diagnostic.classifier import (
    FORMAT_PRIORITY,
    FORMAT_TO_STYLE,
    Classification,
    build_tally,
    classify,
    classify_learning_style,
    learning_style_recommendations,
    select_best_format,
)
from satprep.diagnostic.flow import DiagnosticBackend, DiagnosticFlow, FlowState

__all__ = [
    "FORMAT_PRIORITY",
    "FORMAT_TO_STYLE",
    "Classification",
    "build_tally",
    "classify",
    "classify_learning_style",
    "learning_style_recommendations",
    "select_best_format",
    "DiagnosticBackend",
    "DiagnosticFlow",
    "FlowState",
]
