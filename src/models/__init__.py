"""Domain models for the knowledge pipeline.

This module exports all models used across the application.
"""

from src.models.item import (
    Classification,
    Item,
    Usefulness,
    generate_item_id,
)
from src.models.project import Project
from src.models.provider import (
    BudgetCapConfig,
    ProviderCallResult,
    ProviderCandidate,
    ProviderName,
    ProviderUsage,
    TokenUsage,
)
from src.models.source import Cadence, SourceDescriptor, SourceKind, SourceState
from src.models.usage import ModelUsage, UsageEntry, UsageRun

__all__ = [
    "BudgetCapConfig",
    "Cadence",
    "Classification",
    "Item",
    "ModelUsage",
    "Project",
    "ProviderCallResult",
    "ProviderCandidate",
    "ProviderName",
    "ProviderUsage",
    "SourceDescriptor",
    "SourceKind",
    "SourceState",
    "TokenUsage",
    "UsageEntry",
    "UsageRun",
    "Usefulness",
    "generate_item_id",
]
