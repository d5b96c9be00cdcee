"""
Workflow that chains loading, derivation, validation and reporting.
"""

from .pipeline_workflow import ComparisonResult, ComparisonWorkflow

__all__ = ["ComparisonResult", "ComparisonWorkflow"]
