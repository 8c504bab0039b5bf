"""Base class for records owned by a sync provider."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import cache
from typing import TYPE_CHECKING, ClassVar, Self, cast

from .enums import ArrayKeyConformity, LinkType
from .fields import FieldMap, removable_prefixes, to_snake_case

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from synclink.domain.context import SyncContext
    from synclink.domain.deferral.deferred import DeferredEntity, DeferredRelationship
    from synclink.domain.provider import SyncProvider
    from synclink.domain.serialization.rules import SerializeRules

    from .base import EntityId, ObjectKey
    from .fields import FieldSplit

_NAME_FIELDS = ("name", "display_name", "full_name", "title", "username")


def default_type_uri(entity_type: type[SyncEntity]) -> str:
    module = entity_type.__module__.replace(".", "/")
    return f"/{module}/{entity_type.snake_name()}"


@cache
def field_map_for(entity_type: type[SyncEntity]) -> FieldMap:
    """Build the field table for an entity class once."""
    names = tuple(
        f.name for f in dataclasses.fields(entity_type) if f.init and not f.name.startswith("_")
    )
    lineage = [
        cls.__name__
        for cls in entity_type.__mro__
        if issubclass(cls, SyncEntity) and cls is not SyncEntity
    ]
    aliases = {to_snake_case(key): value for key, value in entity_type.FIELD_ALIASES.items()}
    return FieldMap(
        entity=entity_type.__qualname__,
        fields=names,
        date_fields=frozenset(entity_type.DATE_FIELDS),
        prefixes=removable_prefixes(lineage),
        aliases=aliases,
    )


@dataclass(eq=False, kw_only=True)
class SyncEntity:
    """A record returned by a provider.

    Subclasses are keyword-only dataclasses declared with ``eq=False`` so the
    identity-based equality below is kept. Payload keys that match no declared
    field are kept in an extension map rather than dropped.

    Two entities are equal when they share a class, a provider and an ``id``,
    even if they are different instances.
    """

    DATE_FIELDS: ClassVar[frozenset[str]] = frozenset()
    FIELD_ALIASES: ClassVar[Mapping[str, str]] = {}
    PLURAL: ClassVar[str | None] = None

    id: EntityId | None = None
    canonical_id: EntityId | None = None

    _provider: SyncProvider | None = field(default=None, init=False, repr=False)
    _context: SyncContext | None = field(default=None, init=False, repr=False)
    _extra: dict[str, object] = field(default_factory=dict, init=False, repr=False)

    # --- construction -------------------------------------------------

    @classmethod
    def provide(
        cls,
        data: Mapping[str, object],
        provider: SyncProvider,
        context: SyncContext | None = None,
    ) -> Self:
        """Create an entity from a backend record already shaped as a mapping."""
        return cls._build(*field_map_for(cls).split(data), provider, context)

    @classmethod
    def provide_list(
        cls,
        data_list: Iterable[Mapping[str, object]],
        provider: SyncProvider,
        conformity: ArrayKeyConformity = ArrayKeyConformity.NONE,
        context: SyncContext | None = None,
    ) -> Iterator[Self]:
        """Lazily create one entity per record.

        With ``COMPLETE`` conformity every record is assumed to have the keys of
        the first one, in the same order; with ``PARTIAL`` the key mapping is
        reused for records sharing a key set.
        """
        field_map = field_map_for(cls)
        mappers: dict[tuple[str, ...], Callable[[Mapping[str, object]], FieldSplit]] = {}
        complete: Callable[[Mapping[str, object]], FieldSplit] | None = None
        for data in data_list:
            if conformity is ArrayKeyConformity.COMPLETE:
                if complete is None:
                    complete = field_map.mapper(tuple(data))
                split = complete(data)
            elif conformity is ArrayKeyConformity.PARTIAL:
                keys = tuple(data)
                mapper = mappers.get(keys)
                if mapper is None:
                    mapper = mappers[keys] = field_map.mapper(keys)
                split = mapper(data)
            else:
                split = field_map.split(data)
            yield cls._build(*split, provider, context)

    @classmethod
    def _build(
        cls,
        known: dict[str, object],
        extra: dict[str, object],
        provider: SyncProvider,
        context: SyncContext | None,
    ) -> Self:
        field_map = field_map_for(cls)
        if field_map.date_fields:
            formatter = provider.date_formatter()
            for name in field_map.date_fields.intersection(known):
                known[name] = formatter.parse(known[name])  # type: ignore[arg-type]
        entity = cls(**known)  # type: ignore[arg-type]
        entity._provider = provider
        entity._context = context
        entity._extra.update(extra)
        return entity

    # --- class metadata -----------------------------------------------

    @classmethod
    def field_map(cls) -> FieldMap:
        return field_map_for(cls)

    @classmethod
    def snake_name(cls) -> str:
        return to_snake_case(cls.__name__)

    @classmethod
    def plural_name(cls) -> str:
        if cls.PLURAL is not None:
            return cls.PLURAL
        singular = cls.snake_name()
        if singular.endswith("y") and not singular.endswith(("ay", "ey", "oy", "uy")):
            return singular[:-1] + "ies"
        if singular.endswith(("s", "x", "z", "ch", "sh")):
            return singular + "es"
        return singular + "s"

    @classmethod
    def service_name(cls) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"

    # --- provider binding and extension data --------------------------

    @property
    def provider(self) -> SyncProvider | None:
        return self._provider

    @property
    def context(self) -> SyncContext | None:
        return self._context

    @property
    def extra(self) -> Mapping[str, object]:
        return dict(self._extra)

    def get_extra(self, key: str, default: object = None) -> object:
        return self._extra.get(key, default)

    def set_extra(self, key: str, value: object) -> None:
        if field_map_for(type(self)).resolve(key) is not None:
            raise KeyError(f"{key!r} is a declared field of {type(self).__qualname__}")
        self._extra[key] = value

    def to_fields(self) -> dict[str, object]:
        """Declared fields in order, followed by extension data."""
        values = {name: getattr(self, name) for name in field_map_for(type(self)).fields}
        for key, value in self._extra.items():
            values.setdefault(key, value)
        return values

    # --- identity -----------------------------------------------------

    @property
    def provider_hash(self) -> str | None:
        return self._provider.provider_hash if self._provider is not None else None

    def object_key(self) -> ObjectKey:
        identity: EntityId | tuple[str, int] = (
            self.id if self.id is not None else ("object", id(self))
        )
        return (self.service_name(), identity, self.provider_hash)

    def has_same_identity(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, SyncEntity) or type(other) is not type(self):
            return False
        if self.id is None or other.id is None:
            return False
        return self.id == other.id and self.provider_hash == other.provider_hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SyncEntity):
            return NotImplemented
        return self.has_same_identity(other)

    def __hash__(self) -> int:
        if self.id is None:
            return id(self)
        return hash((type(self), self.provider_hash, self.id))

    def name(self) -> str | None:
        for attr in _NAME_FIELDS:
            value = getattr(self, attr, None)
            if value is None:
                value = self._extra.get(attr)
            if isinstance(value, str) and value:
                return value
        return None

    def description(self) -> str | None:
        value = getattr(self, "description", None)
        if value is None:
            value = self._extra.get("description")
        return value if isinstance(value, str) and value else None

    # --- links --------------------------------------------------------

    def type_uri(self, *, compact: bool = True) -> str:
        if self._provider is None:
            return default_type_uri(type(self))
        return self._provider.store.entity_type_uri(type(self), compact=compact)

    def uri(self, *, compact: bool = True) -> str:
        identity = self.id if self.id is not None else f"#{id(self)}"
        return f"{self.type_uri(compact=compact)}/{identity}"

    def to_link(
        self, link_type: LinkType = LinkType.DEFAULT, *, compact: bool = True
    ) -> dict[str, object]:
        if link_type is LinkType.COMPACT:
            return {"@id": self.uri(compact=compact)}
        link: dict[str, object] = {
            "@type": self.type_uri(compact=compact),
            "@id": self.id if self.id is not None else id(self),
        }
        if link_type is LinkType.FRIENDLY:
            if name := self.name():
                link["@name"] = name
            if description := self.description():
                link["@description"] = description
        return link

    # --- deferral -----------------------------------------------------

    def _deferral_context(self) -> tuple[SyncProvider, SyncContext]:
        if self._provider is None:
            raise RuntimeError(f"{type(self).__qualname__} is not bound to a provider")
        context = self._context or self._provider.get_context()
        return self._provider, context.push(self)

    def defer(
        self,
        field_name: str,
        entity_type: type[SyncEntity],
        id_or_ids: EntityId | Sequence[EntityId] | None,
    ) -> DeferredEntity[SyncEntity] | list[object] | None:
        """Replace ``field_name`` with placeholders for one or more entities."""
        from synclink.domain.deferral.deferred import DeferredEntity
        from synclink.domain.deferral.slots import AttributeSlot

        slot = AttributeSlot(self, field_name)
        if id_or_ids is None:
            slot.set(None)
            return None
        provider, context = self._deferral_context()
        if isinstance(id_or_ids, (int, str)):
            return DeferredEntity.defer(provider, context, entity_type, id_or_ids, slot)
        return DeferredEntity.defer_list(provider, context, entity_type, id_or_ids, slot)

    def defer_relationship(
        self,
        field_name: str,
        entity_type: type[SyncEntity],
    ) -> DeferredRelationship[SyncEntity] | None:
        """Replace ``field_name`` with the entities of ``entity_type`` that refer to this one."""
        from synclink.domain.deferral.deferred import DeferredRelationship
        from synclink.domain.deferral.slots import AttributeSlot

        if self.id is None:
            return None
        provider, context = self._deferral_context()
        return DeferredRelationship.defer(
            provider,
            context,
            entity_type,
            type(self),
            field_name,
            self.id,
            AttributeSlot(self, field_name),
        )

    # --- serialization ------------------------------------------------

    @classmethod
    def build_serialize_rules(cls, rules: SerializeRules) -> SerializeRules:
        """Override to add removal or replacement rules for this entity."""
        return rules

    def serialize_rules(self, *, for_store: bool = False) -> SerializeRules:
        from synclink.domain.serialization.rules import SerializeRules

        date_formatter = self._provider.date_formatter() if self._provider is not None else None
        rules = SerializeRules(entity=type(self), for_store=for_store, date_formatter=date_formatter)
        return type(self).build_serialize_rules(rules)

    def to_dict(self, rules: SerializeRules | None = None) -> dict[str, object]:
        from synclink.domain.serialization.engine import serialize

        return cast(dict[str, object], serialize(self, rules or self.serialize_rules()))
