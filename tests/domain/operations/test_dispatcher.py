from __future__ import annotations

import pytest

from synclink.adapters.sqlalchemy import SqlAlchemySyncStore
from synclink.config.sync import SyncConfig
from synclink.domain.deferral import DeferredEntity, ValueSlot
from synclink.domain.exceptions import (
    DeferralLimitExceededError,
    InvalidEntityTypeError,
    SyncOperationNotImplementedError,
    UnsupportedEntityTypeError,
)
from synclink.domain.model import DeferralPolicy, HydrationPolicy, SyncOperation
from tests.helpers.providers import Gadget, InMemoryProvider, Owner, Widget


def test_get_resolves_deferred_entities_to_a_fixpoint(provider: InMemoryProvider) -> None:
    widget = provider.with_entity(Widget).get(12)

    assert widget is not None
    assert isinstance(widget.owner, Owner)
    assert widget.owner.name == "Alan Turing"
    assert isinstance(widget.parent, Widget)
    assert isinstance(widget.parent.parent, Widget)
    assert widget.parent.parent.name == "Sprocket"
    assert provider.store.deferral_queue.pending() == 0


def test_do_not_resolve_leaves_placeholders_for_the_caller(provider: InMemoryProvider) -> None:
    context = provider.get_context(deferral_policy=DeferralPolicy.DO_NOT_RESOLVE)

    widget = provider.with_entity(Widget, context).get(12)

    assert widget is not None
    assert isinstance(widget.owner, DeferredEntity)
    assert not widget.owner.is_resolved
    assert provider.fetch_count("get_owner") == 0


def test_resolve_early_hands_out_resolved_items_one_at_a_time(
    provider: InMemoryProvider,
) -> None:
    items = provider.with_entity(Widget).get_list()

    first = next(items)

    assert first.id == 10
    assert isinstance(first.owner, Owner)
    assert provider.calls["get_owner", 2] == 0

    rest = list(items)

    assert [widget.id for widget in rest] == [11, 12, 13]
    assert isinstance(rest[1].owner, Owner)
    assert rest[2].owner is None


def test_resolve_late_waits_until_the_list_is_consumed(provider: InMemoryProvider) -> None:
    context = provider.get_context(deferral_policy=DeferralPolicy.RESOLVE_LATE)
    items = provider.with_entity(Widget, context).get_list()

    first = next(items)
    assert isinstance(first.owner, DeferredEntity)

    rest = list(items)

    assert len(rest) == 3
    assert isinstance(first.owner, Owner)
    assert provider.store.deferral_queue.pending() == 0


def test_do_not_resolve_list_is_a_plain_iterator(provider: InMemoryProvider) -> None:
    context = provider.get_context(deferral_policy=DeferralPolicy.DO_NOT_RESOLVE)

    widgets = list(provider.with_entity(Widget, context).get_list())

    assert all(isinstance(widget.owner, DeferredEntity) for widget in widgets)
    assert provider.store.deferral_queue.pending() == len(widgets) + 2


def test_get_list_collected_resolves_once_after_materialising(
    provider: InMemoryProvider,
) -> None:
    context = provider.get_context(hydration_policy=HydrationPolicy.SUPPRESS)

    owners = provider.with_entity(Owner, context).get_list_collected()

    assert [owner.name for owner in owners] == ["Ada Lovelace", "Alan Turing", "Grace Hopper"]
    assert all(owner.widgets is None for owner in owners)


def test_filters_reach_the_provider_through_the_context(provider: InMemoryProvider) -> None:
    context = provider.get_context(hydration_policy=HydrationPolicy.SUPPRESS)

    widgets = list(provider.with_entity(Widget, context).get_list(owner=2))

    assert [widget.name for widget in widgets] == ["Cog"]
    assert provider.calls["get_widgets", 2] == 1


def test_placeholders_enqueued_before_an_operation_are_left_alone(
    provider: InMemoryProvider,
) -> None:
    lazy = provider.get_context(deferral_policy=DeferralPolicy.DO_NOT_RESOLVE)
    stray = provider.with_entity(Widget, lazy).get(10)
    assert stray is not None

    owner = provider.with_entity(Owner).get(3)

    assert owner is not None
    assert owner.widgets == []
    assert isinstance(stray.owner, DeferredEntity)
    assert not stray.owner.is_resolved


def test_defer_writes_placeholders_into_caller_slots(provider: InMemoryProvider) -> None:
    operations = provider.with_entity(Owner)
    single = ValueSlot()
    many = ValueSlot()
    checkpoint = provider.store.deferral_checkpoint()

    placeholder = operations.defer(2, single)
    placeholders = operations.defer_list([1, 3], many)

    assert single.value is placeholder
    assert many.value is placeholders
    assert all(isinstance(item, DeferredEntity) for item in placeholders)
    assert provider.fetch_count("get_owner") == 0

    assert provider.store.resolve_deferred(checkpoint) is True

    assert isinstance(single.value, Owner)
    assert single.value.name == "Alan Turing"
    owners = [owner for owner in placeholders if isinstance(owner, Owner)]
    assert [owner.name for owner in owners] == ["Ada Lovelace", "Grace Hopper"]


def test_fixpoint_loop_is_bounded(store: SqlAlchemySyncStore) -> None:
    provider = InMemoryProvider(store, sync_config=SyncConfig(max_deferral_passes=1))

    with pytest.raises(DeferralLimitExceededError, match="after 1 resolution passes"):
        provider.with_entity(Widget).get(12)


def test_unimplemented_operation(provider: InMemoryProvider) -> None:
    operations = provider.with_entity(Widget)
    widget = operations.get(10)
    assert widget is not None

    with pytest.raises(SyncOperationNotImplementedError, match="does not implement update"):
        operations.update(widget)


def test_entity_types_are_checked(provider: InMemoryProvider) -> None:
    with pytest.raises(UnsupportedEntityTypeError):
        provider.with_entity(Gadget)
    with pytest.raises(InvalidEntityTypeError):
        provider.with_entity(dict)  # type: ignore[type-var]


def test_single_writes_check_the_entity_type(provider: InMemoryProvider) -> None:
    operations = provider.with_entity(Widget)

    with pytest.raises(TypeError, match="expects a Widget"):
        operations.run(SyncOperation.CREATE, Owner(name="Not a widget"))

    created = operations.create(Widget(name="Flywheel"))

    assert created.id == 14
    assert provider.calls["create_widget", "Flywheel"] == 1


def test_run_collecting_list_rejects_single_operations(provider: InMemoryProvider) -> None:
    with pytest.raises(ValueError, match="Not a list operation"):
        provider.with_entity(Widget).run_collecting_list(SyncOperation.READ)


def test_context_changes_return_new_contexts(provider: InMemoryProvider) -> None:
    context = provider.get_context()

    changed = context.with_deferral_policy(DeferralPolicy.RESOLVE_LATE)
    overridden = context.with_hydration_policy(HydrationPolicy.EAGER, Owner)

    assert context.deferral_policy is DeferralPolicy.RESOLVE_EARLY
    assert changed.deferral_policy is DeferralPolicy.RESOLVE_LATE
    assert context.with_deferral_policy(DeferralPolicy.RESOLVE_EARLY) is context
    assert overridden.hydration_policy_for(Owner) is HydrationPolicy.EAGER
    assert overridden.hydration_policy_for(Widget) is HydrationPolicy.DEFER
    assert context.hydration_policy_for(Owner) is HydrationPolicy.DEFER
