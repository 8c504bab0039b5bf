"""Operation definitions, the dispatcher and name resolvers."""

from __future__ import annotations

from .definition import OperationClosure, SyncDefinition
from .dispatcher import EntityOperations
from .resolver import (
    EntityNameResolver,
    FuzzyEntityNameResolver,
    MatchAlgorithm,
    id_from_name_or_id,
    normalise_name,
)

__all__ = [
    "EntityNameResolver",
    "EntityOperations",
    "FuzzyEntityNameResolver",
    "MatchAlgorithm",
    "OperationClosure",
    "SyncDefinition",
    "id_from_name_or_id",
    "normalise_name",
]
