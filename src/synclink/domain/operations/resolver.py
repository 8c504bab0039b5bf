"""Look up entities by name instead of id."""

from __future__ import annotations

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

from synclink.domain.exceptions import EntityNotFoundError

if TYPE_CHECKING:
    from synclink.domain.model.base import EntityId
    from synclink.domain.model.entity import SyncEntity

    from .dispatcher import EntityOperations

log = getLogger(__name__)

type Match[T] = tuple[T | None, float | None]


class MatchAlgorithm(StrEnum):
    SAME = "same"
    LEVENSHTEIN = "levenshtein"
    SIMILAR_TEXT = "similar_text"


def normalise_name(value: str) -> str:
    return " ".join(value.split()).casefold()


class EntityNameResolver[T: SyncEntity]:
    """Find an entity whose name matches exactly after normalisation."""

    def __init__(self, operations: EntityOperations[T], name_field: str = "name") -> None:
        self.operations = operations
        self.name_field = name_field
        self._entities: list[T] | None = None

    def _candidates(self) -> list[T]:
        if self._entities is None:
            self._entities = self.operations.get_list_collected()
        return self._entities

    def _name_of(self, entity: T) -> str | None:
        value = getattr(entity, self.name_field, None)
        if value is None:
            value = entity.get_extra(self.name_field)
        return value if isinstance(value, str) else None

    def get_by_name(self, name: str) -> Match[T]:
        """Return ``(entity, uncertainty)``, or ``(None, None)`` when nothing matches."""
        wanted = normalise_name(name)
        for entity in self._candidates():
            candidate = self._name_of(entity)
            if candidate is not None and normalise_name(candidate) == wanted:
                return entity, 0.0
        return None, None


class FuzzyEntityNameResolver[T: SyncEntity](EntityNameResolver[T]):
    """Find the entity whose name is closest to the one given.

    Uncertainty ranges from 0 (identical) to 1. Candidates above
    ``uncertainty_threshold`` are ignored. Ties go to the candidate with the
    highest ``weight_field``; with ``require_one_match`` a tie that weight
    cannot break is treated as no match.
    """

    def __init__(
        self,
        operations: EntityOperations[T],
        name_field: str = "name",
        *,
        algorithm: MatchAlgorithm = MatchAlgorithm.LEVENSHTEIN,
        uncertainty_threshold: float | None = None,
        weight_field: str | None = None,
        require_one_match: bool = False,
    ) -> None:
        if algorithm is MatchAlgorithm.SAME:
            raise ValueError("Use EntityNameResolver for exact matches")
        if uncertainty_threshold is not None and not 0 <= uncertainty_threshold <= 1:
            raise ValueError("uncertainty_threshold must be between 0 and 1")
        super().__init__(operations, name_field)
        self.algorithm = algorithm
        self.uncertainty_threshold = uncertainty_threshold
        self.weight_field = weight_field
        self.require_one_match = require_one_match
        self._cache: dict[str, Match[T]] = {}

    def uncertainty(self, left: str, right: str) -> float:
        if self.algorithm is MatchAlgorithm.LEVENSHTEIN:
            return Levenshtein.normalized_distance(left, right)
        return 1 - fuzz.ratio(left, right) / 100

    def _weight_of(self, entity: T) -> float:
        if self.weight_field is None:
            return 0.0
        value = getattr(entity, self.weight_field, None)
        if value is None:
            value = entity.get_extra(self.weight_field)
        return float(value) if isinstance(value, (int, float)) else 0.0

    def get_by_name(self, name: str) -> Match[T]:
        wanted = normalise_name(name)
        if wanted in self._cache:
            return self._cache[wanted]

        ranked: list[tuple[float, float, T]] = []
        for entity in self._candidates():
            candidate = self._name_of(entity)
            if candidate is None:
                continue
            uncertainty = self.uncertainty(wanted, normalise_name(candidate))
            if self.uncertainty_threshold is not None and uncertainty > self.uncertainty_threshold:
                continue
            ranked.append((uncertainty, -self._weight_of(entity), entity))

        match: Match[T] = (None, None)
        if ranked:
            ranked.sort(key=lambda item: (item[0], item[1]))
            best_uncertainty, best_weight, best = ranked[0]
            tied = len(ranked) > 1 and ranked[1][:2] == (best_uncertainty, best_weight)
            if not (self.require_one_match and tied):
                match = (best, best_uncertainty)
            else:
                log.debug("Ambiguous match for %r: %s candidates", name, len(ranked))

        self._cache[wanted] = match
        return match


def id_from_name_or_id[T: SyncEntity](
    operations: EntityOperations[T],
    name_or_id: EntityId | None,
    *,
    name_field: str = "name",
    algorithm: MatchAlgorithm | None = None,
    uncertainty_threshold: float | None = None,
) -> EntityId | None:
    """Return ``name_or_id`` if it looks like an id, otherwise the id of the named entity."""
    if name_or_id is None or isinstance(name_or_id, int):
        return name_or_id
    if name_or_id.isdigit():
        return int(name_or_id)
    resolver = operations.resolver(
        name_field, algorithm=algorithm, uncertainty_threshold=uncertainty_threshold
    )
    entity, uncertainty = resolver.get_by_name(name_or_id)
    if entity is None or entity.id is None:
        raise EntityNotFoundError(
            f"{operations.entity_type.__qualname__} not found: {name_or_id!r}"
        )
    log.debug("Resolved %r to %s (uncertainty %s)", name_or_id, entity.id, uncertainty)
    return entity.id
