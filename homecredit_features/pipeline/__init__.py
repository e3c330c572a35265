"""
Pipeline Module

Table joining, stage bookkeeping and orchestration.
"""

from homecredit_features.pipeline.base import StageResult, PipelineResult, STAGES
from homecredit_features.pipeline.joiner import TableJoiner
from homecredit_features.pipeline.orchestrator import PipelineOrchestrator

__all__ = [
    "StageResult",
    "PipelineResult",
    "STAGES",
    "TableJoiner",
    "PipelineOrchestrator",
]
