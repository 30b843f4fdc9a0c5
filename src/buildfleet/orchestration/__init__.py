"""
buildfleet.orchestration - Root-Level Continuations
=====================================================

Components that act on the whole module set:
    - TaskGraphDriver:      BUILD / CLEAN fan-out, fail-fast
    - FatArtifactAssembler: merged archives without relocation
    - ArtifactAggregator:   copy + rename into the root output directory
    - PublishPipeline:      channel selection and upload, per-module isolation
    - CoverageAggregator:   one combined coverage report
    - CleanOrchestrator:    module cleans, then root output deletion
    - ErrorHandler:         retry policy for publishing
"""

from buildfleet.orchestration.aggregator import ArtifactAggregator, target_file_name
from buildfleet.orchestration.assembler import FatArtifactAssembler
from buildfleet.orchestration.cleaner import CleanOrchestrator
from buildfleet.orchestration.coverage import CoverageAggregator
from buildfleet.orchestration.error_handler import ErrorAction, ErrorHandler, RetryPolicy
from buildfleet.orchestration.publisher import PublishPipeline, group_id_for, select_channel
from buildfleet.orchestration.task_graph import TaskGraphDriver

__all__ = [
    "ArtifactAggregator",
    "CleanOrchestrator",
    "CoverageAggregator",
    "ErrorAction",
    "ErrorHandler",
    "FatArtifactAssembler",
    "PublishPipeline",
    "RetryPolicy",
    "TaskGraphDriver",
    "group_id_for",
    "select_channel",
    "target_file_name",
]
