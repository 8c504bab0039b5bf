"""Convert entity graphs into plain dicts and lists."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import TYPE_CHECKING

from synclink.domain.deferral.deferred import DeferredEntity, DeferredRelationship
from synclink.domain.exceptions import (
    ReplacementConflictError,
    SerializationDepthError,
    SerializationError,
)
from synclink.domain.model.dates import DEFAULT_DATE_FORMATTER
from synclink.domain.model.entity import SyncEntity
from synclink.domain.model.enums import LinkType

from .rules import LIST_MARKER, ReplaceRule, SerializeRules

if TYPE_CHECKING:
    from synclink.domain.model.base import ObjectKey

type Path = tuple[str, ...]
type Ancestors = frozenset[ObjectKey]

CIRCULAR_REFERENCE = "Circular reference detected"

_SCALARS = (str, int, float, bool)


def serialize(
    root: object, rules: SerializeRules | None = None
) -> dict[object, object] | list[object]:
    """Serialize an entity, mapping or list.

    Unresolved placeholders become link records and are never fetched. An
    entity reached again through its own fields becomes a link record marked
    as circular.
    """
    if rules is None:
        rules = root.serialize_rules() if isinstance(root, SyncEntity) else SerializeRules()
    result = _Walk(rules).value(root, (), frozenset(), None, None)
    if not isinstance(result, (dict, list)):
        raise SerializationError(f"Array or entity expected: {root!r}")
    return result


class _Walk:
    def __init__(self, rules: SerializeRules) -> None:
        self.rules = rules

    def value(
        self,
        value: object,
        path: Path,
        ancestors: Ancestors,
        owner: SyncEntity | None,
        nearest: SyncEntity | None,
    ) -> object:
        if value is None or isinstance(value, _SCALARS):
            return value
        if isinstance(value, datetime):
            return self._format_date(value, nearest)
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, DeferredEntity):
            if value.is_resolved:
                return self.value(value.value, path, ancestors, owner, nearest)
            return value.to_link(self._link_type(), compact=self.rules.compact_links)
        if isinstance(value, DeferredRelationship):
            if value.is_resolved:
                return self.value(value.value, path, ancestors, owner, nearest)
            return None
        if isinstance(value, SyncEntity):
            return self.entity(value, path, ancestors)
        if isinstance(value, Mapping):
            return self.mapping(value, path, ancestors, None, nearest)
        if isinstance(value, (list, tuple)):
            return self.sequence(value, path, ancestors, nearest)
        where = ".".join(path) or "<root>"
        raise SerializationError(f"Array or entity expected at {where}: {value!r}")

    def _link_type(self) -> LinkType:
        return LinkType.INTERNAL if self.rules.for_store else self.rules.link_type

    def _check_depth(self, path: Path) -> None:
        if len(path) > self.rules.max_depth:
            raise SerializationDepthError(path)

    def _format_date(self, value: datetime, nearest: SyncEntity | None) -> str:
        formatter = self.rules.date_formatter
        if formatter is None and nearest is not None and nearest.provider is not None:
            formatter = nearest.provider.date_formatter()
        return (formatter or DEFAULT_DATE_FORMATTER).format_value(value)

    def entity(self, entity: SyncEntity, path: Path, ancestors: Ancestors) -> object:
        if self.rules.for_store and path:
            return entity.to_link(LinkType.INTERNAL, compact=self.rules.compact_links)
        key = entity.object_key()
        if self.rules.detect_recursion and key in ancestors:
            link = entity.to_link(self.rules.link_type, compact=self.rules.compact_links)
            link["@why"] = CIRCULAR_REFERENCE
            return link
        self._check_depth(path)
        fields = entity.to_fields()
        if self.rules.remove_canonical_id:
            fields.pop("canonical_id", None)
        return self.mapping(fields, path, ancestors | {key}, entity, entity)

    def mapping(
        self,
        node: Mapping[object, object],
        path: Path,
        ancestors: Ancestors,
        owner: SyncEntity | None,
        nearest: SyncEntity | None,
    ) -> dict[object, object]:
        self._check_depth(path)
        node_path = ".".join(path)
        replacements: dict[object, ReplaceRule] = {}
        for rule in self.rules.replacements_for(node_path, owner):
            if rule.key != LIST_MARKER:
                replacements.setdefault(rule.key, rule)
        dropped = self.rules.removals_for(node_path, owner) - replacements.keys()

        result: dict[object, object] = {}
        for key, child in node.items():
            if key in dropped:
                continue
            rule = replacements.get(key)
            child_path = (*path, str(key))
            if rule is None:
                result[key] = self.value(child, child_path, ancestors, None, nearest)
                continue
            target = rule.target_key
            if target != key and target in node and target not in dropped:
                raise ReplacementConflictError(str(key), target)
            if rule.transform is not None:
                transformed = rule.transform(child)
                result[target] = self.value(transformed, child_path, ancestors, None, nearest)
            else:
                result[target] = self.reduce_to_id(child, child_path)

        if self.rules.sort_by_key:
            return dict(sorted(result.items(), key=lambda item: str(item[0])))
        return result

    def sequence(
        self,
        node: list[object] | tuple[object, ...],
        path: Path,
        ancestors: Ancestors,
        nearest: SyncEntity | None,
    ) -> list[object]:
        self._check_depth(path)
        element_path = (*path[:-1], path[-1] + LIST_MARKER) if path else (LIST_MARKER,)
        for rule in self.rules.replacements_for(".".join(path), None):
            if rule.key == LIST_MARKER:
                if rule.transform is not None:
                    return [
                        self.value(rule.transform(item), element_path, ancestors, None, nearest)
                        for item in node
                    ]
                return self.reduce_to_id(node, path)
        return [self.value(item, element_path, ancestors, None, nearest) for item in node]

    def reduce_to_id(self, value: object, path: Path) -> object:
        if isinstance(value, DeferredRelationship):
            if not value.is_resolved:
                return None
            value = value.value
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return [self._id_of(item, path) for item in value]
        return self._id_of(value, path)

    def _id_of(self, value: object, path: Path) -> object:
        if value is None:
            return None
        if isinstance(value, SyncEntity):
            return value.id
        if isinstance(value, DeferredEntity):
            resolved = value.value
            return resolved.id if resolved is not None else value.entity_id
        raise SerializationError(f"Cannot replace (not a SyncEntity): {'.'.join(path)}")
