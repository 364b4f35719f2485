"""
OSM element records: bounds, nodes, ways, relations, and their references.

Ways and relations refer to other elements through `UnresolvedReference`
values, which carry only the target's kind and ID. Resolve them against a
parsed `OSM` model with `OSM.resolve` to get a `Reference` to the stored
element. For format details see https://wiki.openstreetmap.org/wiki/Elements
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Union

from . import polygon


class ElementKind(Enum):
    """The three ID namespaces of an OSM document."""

    NODE = "node"
    WAY = "way"
    RELATION = "relation"


@dataclass(frozen=True)
class Tag:
    """A free-form key/value metadata pair."""

    key: str
    val: str


@dataclass(frozen=True)
class Bounds:
    """The rectangular lat/lon extent declared by a document."""

    minlat: float
    minlon: float
    maxlat: float
    maxlon: float


@dataclass(frozen=True)
class UnresolvedReference:
    """An ID typed by the kind of element it points to."""

    kind: ElementKind
    id: int

    @classmethod
    def node(cls, id: int) -> UnresolvedReference:  # noqa: A002
        return cls(ElementKind.NODE, id)

    @classmethod
    def way(cls, id: int) -> UnresolvedReference:  # noqa: A002
        return cls(ElementKind.WAY, id)

    @classmethod
    def relation(cls, id: int) -> UnresolvedReference:  # noqa: A002
        return cls(ElementKind.RELATION, id)


@dataclass(frozen=True)
class Member:
    """A role-annotated reference from a relation to another element."""

    reference: UnresolvedReference
    role: str = ""

    @property
    def kind(self) -> ElementKind:
        return self.reference.kind


class _Tagged:
    """Tag lookups shared by nodes, ways, and relations."""

    tags: list[Tag]

    def tag(self, key: str, default: str | None = None) -> str | None:
        """
        Return the value of the first tag with this key.

        Parameters
        ----------
        key
            The tag key to look up.
        default
            Value to return if no tag has this key.

        Returns
        -------
        val
        """
        for tag in self.tags:
            if tag.key == key:
                return tag.val
        return default

    def tags_dict(self) -> dict[str, str]:
        """
        Return the tags as a dict, keeping the first value of repeated keys.

        Returns
        -------
        tags
        """
        tags: dict[str, str] = {}
        for tag in self.tags:
            tags.setdefault(tag.key, tag.val)
        return tags


@dataclass
class Node(_Tagged):
    """A single geographic point."""

    id: int
    lat: float
    lon: float
    tags: list[Tag] = field(default_factory=list)


@dataclass
class Way(_Tagged):
    """An ordered polyline of node references, possibly a closed ring."""

    id: int
    tags: list[Tag] = field(default_factory=list)
    nodes: list[UnresolvedReference] = field(default_factory=list)

    def is_closed(self) -> bool:
        """Return True if the node list is non-empty and starts where it ends."""
        return len(self.nodes) > 0 and self.nodes[0] == self.nodes[-1]

    def is_polygon(self, *, closed_way_is_polygon: bool | None = None) -> bool:
        """
        Determine whether this way denotes an area rather than a line.

        See `polygon.is_polygon` for the classification rules.

        Parameters
        ----------
        closed_way_is_polygon
            If None, use `settings.closed_way_is_polygon`.

        Returns
        -------
        is_polygon
        """
        return polygon.is_polygon(self, closed_way_is_polygon=closed_way_is_polygon)


@dataclass
class Relation(_Tagged):
    """An ordered group of member nodes, ways, and relations."""

    id: int
    tags: list[Tag] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)


Element = Union[Node, Way, Relation]


@dataclass(frozen=True, eq=False)
class Reference:
    """
    The result of resolving an `UnresolvedReference` against a model.

    `element` is the record stored in the model, never a copy. The
    `UNRESOLVED` sentinel has neither kind nor element and is falsy.
    """

    kind: ElementKind | None
    element: Element | None

    @property
    def is_resolved(self) -> bool:
        return self.element is not None

    def __bool__(self) -> bool:
        return self.element is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Reference):
            return NotImplemented
        return self.kind == other.kind and self.element is other.element

    def __hash__(self) -> int:
        return hash((self.kind, id(self.element)))

    def __repr__(self) -> str:
        if self.element is None:
            return "Reference.UNRESOLVED"
        return f"Reference({self.kind.value}, id={self.element.id})"  # type: ignore[union-attr]


UNRESOLVED = Reference(None, None)
