"""Deferred placeholders and the queue that resolves them."""

from __future__ import annotations

from .deferred import DeferredEntity, DeferredRelationship, Resolvable
from .queue import DeferralQueue
from .slots import AttributeSlot, ItemSlot, Slot, ValueSlot

__all__ = [
    "AttributeSlot",
    "DeferralQueue",
    "DeferredEntity",
    "DeferredRelationship",
    "ItemSlot",
    "Resolvable",
    "Slot",
    "ValueSlot",
]
