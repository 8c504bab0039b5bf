"""Rules controlling how entity graphs are serialized."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from synclink.domain.model.enums import LinkType

if TYPE_CHECKING:
    from synclink.domain.model.dates import DateFormatter
    from synclink.domain.model.entity import SyncEntity

LIST_MARKER = "[]"

type ValueTransform = Callable[[object], object]
type ReplaceTarget = (
    str | tuple[str, str | None] | tuple[str, str | None, ValueTransform | None] | ReplaceRule
)


def split_target(target: str) -> tuple[str, str]:
    """Split ``"posts[].user"`` into the node path ``"posts[]"`` and key ``"user"``."""
    path, _, key = target.rpartition(".")
    if not key:
        raise ValueError(f"Invalid rule target: {target!r}")
    return path, key


@dataclass(frozen=True, slots=True)
class RemoveRule:
    """Drop ``key`` from nodes at ``path``, or from every ``entity`` node when set."""

    key: str
    path: str = ""
    entity: type[SyncEntity] | None = None

    def applies_to(self, path: str, owner: SyncEntity | None) -> bool:
        if self.entity is not None:
            return owner is not None and isinstance(owner, self.entity)
        return self.path == path


@dataclass(frozen=True, slots=True)
class ReplaceRule:
    """Reduce ``key`` to an id, optionally renaming it or transforming it instead.

    A ``key`` of ``"[]"`` targets every element of a list node.
    """

    key: str
    new_key: str | None = None
    transform: ValueTransform | None = None
    path: str = ""
    entity: type[SyncEntity] | None = None

    def __post_init__(self) -> None:
        if self.key == LIST_MARKER and self.new_key is not None:
            raise ValueError("List element rules cannot rename")

    def applies_to(self, path: str, owner: SyncEntity | None) -> bool:
        if self.entity is not None:
            return owner is not None and isinstance(owner, self.entity)
        return self.path == path

    @property
    def target_key(self) -> str:
        return self.new_key or self.key


def _remove_rule(target: str | RemoveRule, entity: type[SyncEntity] | None) -> RemoveRule:
    if isinstance(target, RemoveRule):
        return target
    if entity is not None:
        return RemoveRule(target, entity=entity)
    path, key = split_target(target)
    return RemoveRule(key, path=path)


def _replace_rule(target: ReplaceTarget, entity: type[SyncEntity] | None) -> ReplaceRule:
    if isinstance(target, ReplaceRule):
        return target
    if isinstance(target, str):
        name, new_key, transform = target, None, None
    elif len(target) == 2:  # noqa: PLR2004
        name, new_key = target
        transform = None
    else:
        name, new_key, transform = target  # type: ignore[misc]
    if entity is not None:
        return ReplaceRule(name, new_key, transform, entity=entity)
    path, key = split_target(name)
    return ReplaceRule(key, new_key, transform, path=path)


@dataclass(frozen=True, slots=True)
class SerializeRules:
    """Immutable rule set for one serialization.

    Rule targets are dotted node paths relative to the root, where ``[]``
    marks the elements of a list: ``"secret"`` names a root field and
    ``"posts[].user"`` names ``user`` on every element of ``posts``.
    Rules scoped to an ``entity`` class apply wherever such an entity appears.
    """

    entity: type[SyncEntity] | None = None
    remove_rules: tuple[RemoveRule, ...] = ()
    replace_rules: tuple[ReplaceRule, ...] = ()
    max_depth: int = 100
    detect_recursion: bool = True
    date_formatter: DateFormatter | None = None
    remove_canonical_id: bool = True
    for_store: bool = False
    sort_by_key: bool = False
    link_type: LinkType = LinkType.DEFAULT
    compact_links: bool = True

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")

    def removing(
        self, *targets: str | RemoveRule, entity: type[SyncEntity] | None = None
    ) -> SerializeRules:
        rules = tuple(_remove_rule(target, entity) for target in targets)
        return replace(self, remove_rules=self.remove_rules + rules)

    def replacing(
        self, *targets: ReplaceTarget, entity: type[SyncEntity] | None = None
    ) -> SerializeRules:
        rules = tuple(_replace_rule(target, entity) for target in targets)
        return replace(self, replace_rules=self.replace_rules + rules)

    def with_options(self, **changes: object) -> SerializeRules:
        return replace(self, **changes)  # type: ignore[arg-type]

    def merge(self, other: SerializeRules) -> SerializeRules:
        """Append ``other``'s rules; options stay as they are on ``self``."""
        return replace(
            self,
            remove_rules=self.remove_rules + other.remove_rules,
            replace_rules=self.replace_rules + other.replace_rules,
        )

    def removals_for(self, path: str, owner: SyncEntity | None) -> set[str]:
        return {rule.key for rule in self.remove_rules if rule.applies_to(path, owner)}

    def replacements_for(self, path: str, owner: SyncEntity | None) -> list[ReplaceRule]:
        return [rule for rule in self.replace_rules if rule.applies_to(path, owner)]
