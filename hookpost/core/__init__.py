"""Sync and mutation engine."""

from hookpost.core.bulk import BulkExecutor
from hookpost.core.guard import Lane, OperationGuard, OperationState
from hookpost.core.mutations import ComposeMode, ComposeState, EditFields, MutationEngine
from hookpost.core.results import BulkReport, OperationResult, SyncReport
from hookpost.core.search import filter_messages
from hookpost.core.sync import SyncCoordinator

__all__ = [
    "BulkExecutor",
    "BulkReport",
    "ComposeMode",
    "ComposeState",
    "EditFields",
    "Lane",
    "MutationEngine",
    "OperationGuard",
    "OperationResult",
    "OperationState",
    "SyncCoordinator",
    "SyncReport",
    "filter_messages",
]
