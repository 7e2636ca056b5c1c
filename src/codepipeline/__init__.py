"""
CodePipeline state lookups.
"""

from .pipeline_manager import (
    PipelineError,
    PipelineManager,
    RevisionNotFoundError,
    new_pipeline_manager,
)

__all__ = [
    "PipelineManager",
    "PipelineError",
    "RevisionNotFoundError",
    "new_pipeline_manager",
]
