from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest

from synclink.adapters.jsonplaceholder import JsonPlaceholderProvider, User
from synclink.adapters.sqlalchemy import SqlAlchemySyncStore  # noqa: TC001
from synclink.app import check_heartbeats, entity_type_for, fetch_entities, list_runs, open_sync_store
from synclink.domain.exceptions import EntityNotFoundError
from synclink.domain.model import DeferralPolicy, HydrationPolicy
from tests.helpers.jsonplaceholder_api import BASE_URL, FakeJsonPlaceholderApi, make_provider


@pytest.fixture
def api() -> FakeJsonPlaceholderApi:
    return FakeJsonPlaceholderApi()


@pytest.fixture
def jsonplaceholder(
    store: SqlAlchemySyncStore, api: FakeJsonPlaceholderApi
) -> JsonPlaceholderProvider:
    return make_provider(store, api)


def test_entity_type_for() -> None:
    assert entity_type_for(" User ") is User
    with pytest.raises(ValueError, match="expected one of: comment, post, user"):
        entity_type_for("widget")


def test_fetch_by_name(
    store: SqlAlchemySyncStore,
    jsonplaceholder: JsonPlaceholderProvider,
    api: FakeJsonPlaceholderApi,
) -> None:
    result = fetch_entities(
        "user",
        entity_id="ervin howell",
        hydration_policy=HydrationPolicy.SUPPRESS,
        store=store,
        provider=jsonplaceholder,
    )

    assert [user["username"] for user in result] == ["Antonette"]
    assert api.paths == ["/users", "/users/2"]


def test_fetch_by_numeric_id_resolves_references(
    store: SqlAlchemySyncStore, jsonplaceholder: JsonPlaceholderProvider
) -> None:
    (post,) = fetch_entities(
        "post",
        entity_id="1",
        hydration_policy=HydrationPolicy.SUPPRESS,
        store=store,
        provider=jsonplaceholder,
    )

    assert post["title"] == "sunt aut facere"
    assert post["user"]["name"] == "Leanne Graham"
    assert post["comments"] is None


def test_fetch_filtered_list_without_resolution(
    store: SqlAlchemySyncStore, jsonplaceholder: JsonPlaceholderProvider
) -> None:
    result = fetch_entities(
        "post",
        filters={"user": "2"},
        deferral_policy=DeferralPolicy.DO_NOT_RESOLVE,
        hydration_policy=HydrationPolicy.SUPPRESS,
        store=store,
        provider=jsonplaceholder,
    )

    assert [post["id"] for post in result] == [2]
    assert result[0]["user"] == {"@type": "jsonplaceholder:user", "@id": 2}


def test_fetch_unknown_name(
    store: SqlAlchemySyncStore, jsonplaceholder: JsonPlaceholderProvider
) -> None:
    with pytest.raises(EntityNotFoundError, match="User not found: 'Nobody'"):
        fetch_entities("user", entity_id="Nobody", store=store, provider=jsonplaceholder)


def test_fetch_missing_id(store: SqlAlchemySyncStore, jsonplaceholder: JsonPlaceholderProvider) -> None:
    with pytest.raises(EntityNotFoundError, match="User not found: 99"):
        fetch_entities("user", entity_id=99, store=store, provider=jsonplaceholder)


def test_check_heartbeats(
    store: SqlAlchemySyncStore, jsonplaceholder: JsonPlaceholderProvider
) -> None:
    checked = check_heartbeats(ttl=0, store=store, providers=[jsonplaceholder])

    assert checked == [f"JsonPlaceholderProvider ({BASE_URL})"]


def test_list_runs_with_store(store: SqlAlchemySyncStore) -> None:
    run_uuid = store.run_uuid

    assert [run.run_uuid for run in list_runs(store=store)] == [run_uuid]


def test_list_runs_does_not_record_a_run(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("DATABASE_URI", f"sqlite+pysqlite:///{tmp_path / 'runs.db'}")
    with open_sync_store(command="get", arguments=["user"]) as store:
        _ = store.run_id

    first = list_runs()
    second = list_runs()

    assert [run.run_command for run in first] == ["get"]
    assert len(second) == 1
    assert first[0].exit_status == 0
