from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from synclink.domain.exceptions import EntityNotFoundError
from synclink.domain.model import HydrationPolicy
from synclink.domain.operations import (
    EntityNameResolver,
    FuzzyEntityNameResolver,
    MatchAlgorithm,
    id_from_name_or_id,
    normalise_name,
)
from tests.helpers.providers import InMemoryProvider, Owner

if TYPE_CHECKING:
    from synclink.adapters.sqlalchemy import SqlAlchemySyncStore
    from synclink.domain.operations import EntityOperations

SAMS = {
    1: {"id": 1, "name": "Sam", "score": 1},
    2: {"id": 2, "name": "Sam", "score": 9},
    3: {"id": 3, "name": "Pat", "score": 4},
}


def _owners(provider: InMemoryProvider) -> EntityOperations[Owner]:
    context = provider.get_context(hydration_policy=HydrationPolicy.SUPPRESS)
    return provider.with_entity(Owner, context)


def test_normalise_name() -> None:
    assert normalise_name("  Ada   LOVELACE ") == "ada lovelace"


def test_exact_match_ignores_case_and_spacing(provider: InMemoryProvider) -> None:
    resolver = _owners(provider).resolver()

    owner, uncertainty = resolver.get_by_name("  ada   LOVELACE ")

    assert isinstance(resolver, EntityNameResolver)
    assert owner is not None
    assert owner.id == 1
    assert uncertainty == 0.0
    assert resolver.get_by_name("Ada") == (None, None)


def test_candidates_are_fetched_once(provider: InMemoryProvider) -> None:
    resolver = _owners(provider).resolver()

    resolver.get_by_name("Ada Lovelace")
    resolver.get_by_name("Alan Turing")

    assert provider.calls["get_owners", None] == 1


def test_levenshtein_match(provider: InMemoryProvider) -> None:
    resolver = _owners(provider).resolver(algorithm=MatchAlgorithm.LEVENSHTEIN)

    owner, uncertainty = resolver.get_by_name("Ada Lovelase")

    assert isinstance(resolver, FuzzyEntityNameResolver)
    assert owner is not None
    assert owner.id == 1
    assert uncertainty == pytest.approx(1 / 12)


def test_similar_text_match(provider: InMemoryProvider) -> None:
    resolver = _owners(provider).resolver(algorithm=MatchAlgorithm.SIMILAR_TEXT)

    owner, uncertainty = resolver.get_by_name("grace hoper")

    assert owner is not None
    assert owner.id == 3
    assert uncertainty is not None
    assert uncertainty < 0.1


def test_threshold_rejects_distant_names(provider: InMemoryProvider) -> None:
    resolver = _owners(provider).resolver(
        algorithm=MatchAlgorithm.LEVENSHTEIN, uncertainty_threshold=0.2
    )

    assert resolver.get_by_name("Zzz") == (None, None)


def test_invalid_threshold(provider: InMemoryProvider) -> None:
    with pytest.raises(ValueError, match="between 0 and 1"):
        _owners(provider).resolver(algorithm=MatchAlgorithm.LEVENSHTEIN, uncertainty_threshold=2)


def test_weight_breaks_ties(store: SqlAlchemySyncStore) -> None:
    provider = InMemoryProvider(store, owners=SAMS, name="sams")
    operations = _owners(provider)

    weighted = operations.resolver(
        algorithm=MatchAlgorithm.LEVENSHTEIN, weight_field="score", require_one_match=True
    )
    unweighted = operations.resolver(
        algorithm=MatchAlgorithm.LEVENSHTEIN, require_one_match=True
    )

    owner, _ = weighted.get_by_name("Sam")
    assert owner is not None
    assert owner.id == 2
    assert unweighted.get_by_name("Sam") == (None, None)


def test_id_from_name_or_id(provider: InMemoryProvider) -> None:
    operations = _owners(provider)

    assert id_from_name_or_id(operations, None) is None
    assert id_from_name_or_id(operations, 5) == 5
    assert id_from_name_or_id(operations, "2") == 2
    assert id_from_name_or_id(operations, "Grace Hopper") == 3
    assert (
        id_from_name_or_id(
            operations,
            "Grace Hoper",
            algorithm=MatchAlgorithm.LEVENSHTEIN,
            uncertainty_threshold=0.3,
        )
        == 3
    )
    with pytest.raises(EntityNotFoundError, match="Owner not found: 'Nobody'"):
        id_from_name_or_id(operations, "Nobody")
