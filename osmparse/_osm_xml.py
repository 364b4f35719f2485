"""
Parse OSM XML into typed element records.

For file format information see https://wiki.openstreetmap.org/wiki/OSM_XML

The parser is a pull-based state machine over the start/end events of the
standard library's streaming XML reader. The top-level loop dispatches each
bounds, node, way, or relation start event to a consumer that pulls events
until the element's own end event. Element-level failures discard just the
offending record and parsing continues. Malformed XML is fatal.
"""

from __future__ import annotations

import io
import logging as lg
import re
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING
from typing import Any
from typing import Callable
from typing import NamedTuple
from typing import TypeVar
from xml.etree.ElementTree import ParseError
from xml.etree.ElementTree import iterparse

from . import utils
from ._errors import AttributeLookupError
from ._errors import BoundsInvalidError
from ._errors import ElementMalformedError
from ._errors import ErrorReason
from ._errors import TokenizerError
from ._errors import UnknownElementError
from .elements import Bounds
from .elements import ElementKind
from .elements import Member
from .elements import Node
from .elements import Relation
from .elements import Tag
from .elements import UnresolvedReference
from .elements import Way

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import IO
    from xml.etree.ElementTree import Element

T = TypeVar("T")

# the event kinds requested from the XML reader. comments and processing
# instructions are pulled but ignored
_XML_EVENTS = ("start", "end", "comment", "pi")

# identifiers are plain base-10 integers in the signed 64-bit range
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


class ElementType(Enum):
    """The element kinds recognized in an OSM XML document."""

    BOUNDS = "bounds"
    NODE = "node"
    WAY = "way"
    RELATION = "relation"
    TAG = "tag"
    NODE_REF = "nd"
    MEMBER = "member"


# member "type" attribute values, matched case-insensitively
_MEMBER_KINDS = {kind.value: kind for kind in ElementKind}


class _Event(NamedTuple):
    kind: str
    name: str
    attrs: dict[str, str]
    element: Element | None


def _local_name(tag: Any) -> str:
    # comment and pi events have a callable tag, not a string
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _classify(name: str) -> ElementType:
    """
    Map an element name to its element type.

    Parameters
    ----------
    name
        The element's local name, in any letter case.

    Returns
    -------
    element_type
    """
    try:
        return ElementType(name.lower())
    except ValueError:
        raise UnknownElementError(name) from None


def _parse_int(value: str) -> int:
    if _INT_PATTERN.fullmatch(value) is None:
        msg = f"invalid literal for int: {value!r}"
        raise ValueError(msg)
    number = int(value)
    if not _INT_MIN <= number <= _INT_MAX:
        msg = f"integer out of 64-bit range: {value!r}"
        raise ValueError(msg)
    return number


def _parse_float(value: str) -> float:
    if value != value.strip() or "_" in value:
        msg = f"invalid literal for float: {value!r}"
        raise ValueError(msg)
    return float(value)


_CASTS: dict[Callable[[str], Any], tuple[Callable[[str], Any], ErrorReason | None]] = {
    str: (str, None),
    int: (_parse_int, ErrorReason.UNPARSABLE_INT),
    float: (_parse_float, ErrorReason.UNPARSABLE_FLOAT),
}


def _find_attribute(
    name: str,
    attrs: dict[str, str],
    cast: Callable[[str], T] = str,  # type: ignore[assignment]
) -> T:
    """
    Find an attribute by name and parse its value.

    Attribute names are matched exactly (case-sensitive).

    Parameters
    ----------
    name
        The attribute name.
    attrs
        The element's attributes.
    cast
        One of `str`, `int`, or `float`: the type to parse the value into.

    Returns
    -------
    value
    """
    if name not in attrs:
        raise AttributeLookupError(name, ErrorReason.MISSING_ATTRIBUTE)

    value = attrs[name]
    parser, reason = _CASTS[cast]
    try:
        return parser(value)  # type: ignore[no-any-return]
    except ValueError:
        raise AttributeLookupError(name, reason, value) from None  # type: ignore[arg-type]


def _parse_tag(attrs: dict[str, str]) -> Tag:
    """
    Build a tag from a tag element's attributes.

    Parameters
    ----------
    attrs
        The tag element's attributes.

    Returns
    -------
    tag
    """
    try:
        return Tag(key=_find_attribute("k", attrs), val=_find_attribute("v", attrs))
    except AttributeLookupError as e:
        raise ElementMalformedError(ElementType.TAG, e.reason, str(e)) from e


def _parse_bounds(attrs: dict[str, str]) -> Bounds:
    """
    Build the document bounds from a bounds element's attributes.

    Parameters
    ----------
    attrs
        The bounds element's attributes.

    Returns
    -------
    bounds
    """
    try:
        return Bounds(
            minlat=_find_attribute("minlat", attrs, float),
            minlon=_find_attribute("minlon", attrs, float),
            maxlat=_find_attribute("maxlat", attrs, float),
            maxlon=_find_attribute("maxlon", attrs, float),
        )
    except AttributeLookupError as e:
        raise BoundsInvalidError(e.reason) from e


class _EventStream:
    """Pull events one at a time from the streaming XML reader."""

    def __init__(self, source: IO[Any] | str | Path | bytes) -> None:
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        elif isinstance(source, Path):
            source = str(source)
        self._events: Iterator[tuple[str, Any]] = iterparse(source, events=_XML_EVENTS)  # noqa: S314
        self._root: Element | None = None
        # nesting depth of the most recently pulled event: a start event
        # reports its own depth, an end event the depth of its parent
        self.depth = 0

    def next(self) -> _Event | None:
        """
        Return the next event, or None at the end of the document.

        Returns
        -------
        event
        """
        try:
            event, element = next(self._events)
        except StopIteration:
            return None
        except ParseError as e:
            msg = f"Malformed XML: {e}"
            raise TokenizerError(msg) from e
        except OSError as e:
            msg = f"Could not read XML source: {e}"
            raise TokenizerError(msg) from e

        if event not in {"start", "end"}:
            return _Event("other", "", {}, None)

        if event == "start":
            self.depth += 1
        else:
            self.depth -= 1

        if self._root is None:
            self._root = element
        return _Event(event, _local_name(element.tag), dict(element.attrib), element)

    def skip_to(self, depth: int) -> None:
        """
        Pull events until the element opened at `depth` has been closed.

        Parameters
        ----------
        depth
            The depth reported by the element's start event.
        """
        while self.depth >= depth:
            if self.next() is None:
                msg = "Document ended inside an unclosed element"
                raise TokenizerError(msg)

    def release(self) -> None:
        """Drop the tree the reader has built so far below the root."""
        if self._root is not None:
            self._root.clear()


class _OSMEventParser:
    """
    State machine that builds OSM element records from XML events.

    After `run` returns, the parsed records are in `self.bounds`,
    `self.nodes`, `self.ways`, and `self.relations`, each collection keyed by
    element ID. A repeated ID replaces the earlier element.
    """

    def __init__(self, source: IO[Any] | str | Path | bytes) -> None:
        self._events = _EventStream(source)
        self.bounds: Bounds | None = None
        self.nodes: dict[int, Node] = {}
        self.ways: dict[int, Way] = {}
        self.relations: dict[int, Relation] = {}
        self.discarded = 0

    def run(self) -> None:
        """Consume the whole document."""
        while True:
            try:
                event = self._events.next()
                if event is None:
                    return
                if event.kind != "start":
                    continue
                self._dispatch(event)

            except BoundsInvalidError as e:
                self.bounds = None
                utils.log(f"Ignoring bounds: {e}", level=lg.WARNING)

            except UnknownElementError as e:
                utils.log(f"Skipping element: {e}", level=lg.DEBUG)

            except ElementMalformedError as e:
                self.discarded += 1
                utils.log(f"Discarding element: {e}", level=lg.WARNING)

    def _dispatch(self, event: _Event) -> None:
        element_type = _classify(event.name)

        if element_type is ElementType.BOUNDS:
            self.bounds = _parse_bounds(event.attrs)
        elif element_type is ElementType.NODE:
            self._store(self.nodes, self._consume(self._parse_node, event))
        elif element_type is ElementType.WAY:
            self._store(self.ways, self._consume(self._parse_way, event))
        elif element_type is ElementType.RELATION:
            self._store(self.relations, self._consume(self._parse_relation, event))
        else:
            # tags, node refs, and members are only valid inside an element
            raise UnknownElementError(event.name)

    def _consume(self, parse: Callable[[dict[str, str]], T], event: _Event) -> T:
        """
        Run a record consumer, discarding the rest of its subtree on failure.

        Parameters
        ----------
        parse
            The node, way, or relation consumer.
        event
            The record's start event.

        Returns
        -------
        record
        """
        depth = self._events.depth
        try:
            return parse(event.attrs)
        except (ElementMalformedError, UnknownElementError):
            self._events.skip_to(depth)
            self._events.release()
            raise

    def _store(self, collection: dict[int, Any], element: Node | Way | Relation) -> None:
        if element.id in collection:
            kind = type(element).__name__.lower()
            msg = f"Duplicate {kind} id {element.id}: keeping the last occurrence"
            utils.log(msg, level=lg.WARNING)
        collection[element.id] = element
        self._events.release()

    def _read_id(self, element_type: ElementType, attrs: dict[str, str]) -> int:
        try:
            return _find_attribute("id", attrs, int)
        except AttributeLookupError as e:
            raise ElementMalformedError(element_type, e.reason, str(e)) from e

    def _children(self, element_type: ElementType) -> Iterator[tuple[ElementType, _Event]]:
        """
        Yield the child start events of the element being consumed.

        Stops at the end event of the element itself, tracked by nesting
        depth so children with the same name do not end it early. End events
        of children are skipped.

        Parameters
        ----------
        element_type
            The type of the element being consumed.

        Yields
        ------
        child
            The child's element type and its start event.
        """
        depth = self._events.depth
        while True:
            event = self._events.next()
            if event is None:
                msg = f"Document ended inside {element_type.value!r} element"
                raise TokenizerError(msg)

            if event.kind == "end":
                if self._events.depth < depth:
                    if event.element is not None:
                        event.element.clear()
                    return
            elif event.kind == "start":
                yield _classify(event.name), event

    def _collect_tag(self, tags: list[Tag], attrs: dict[str, str]) -> None:
        try:
            tags.append(_parse_tag(attrs))
        except ElementMalformedError as e:
            utils.log(f"Dropping tag: {e}", level=lg.DEBUG)

    def _parse_node(self, attrs: dict[str, str]) -> Node:
        """
        Consume a node element and its children.

        Parameters
        ----------
        attrs
            The node element's attributes.

        Returns
        -------
        node
        """
        node_id = self._read_id(ElementType.NODE, attrs)
        try:
            lat = _find_attribute("lat", attrs, float)
            lon = _find_attribute("lon", attrs, float)
        except AttributeLookupError as e:
            raise ElementMalformedError(ElementType.NODE, e.reason, str(e)) from e

        tags: list[Tag] = []
        for child_type, child in self._children(ElementType.NODE):
            if child_type is ElementType.TAG:
                self._collect_tag(tags, child.attrs)
            else:
                detail = f"node {node_id} contains {child.name!r}"
                raise ElementMalformedError(ElementType.NODE, ErrorReason.ILLEGAL_NESTING, detail)

        return Node(id=node_id, lat=lat, lon=lon, tags=tags)

    def _parse_way(self, attrs: dict[str, str]) -> Way:
        """
        Consume a way element and its tag and node reference children.

        Parameters
        ----------
        attrs
            The way element's attributes.

        Returns
        -------
        way
        """
        way_id = self._read_id(ElementType.WAY, attrs)

        tags: list[Tag] = []
        node_refs: list[UnresolvedReference] = []
        for child_type, child in self._children(ElementType.WAY):
            if child_type is ElementType.TAG:
                self._collect_tag(tags, child.attrs)
            elif child_type is ElementType.NODE_REF:
                try:
                    ref = _find_attribute("ref", child.attrs, int)
                except AttributeLookupError as e:
                    raise ElementMalformedError(ElementType.WAY, e.reason, str(e)) from e
                node_refs.append(UnresolvedReference.node(ref))
            else:
                detail = f"way {way_id} contains {child.name!r}"
                raise ElementMalformedError(ElementType.WAY, ErrorReason.ILLEGAL_NESTING, detail)

        return Way(id=way_id, tags=tags, nodes=node_refs)

    def _parse_relation(self, attrs: dict[str, str]) -> Relation:
        """
        Consume a relation element and its tag and member children.

        Parameters
        ----------
        attrs
            The relation element's attributes.

        Returns
        -------
        relation
        """
        relation_id = self._read_id(ElementType.RELATION, attrs)

        tags: list[Tag] = []
        members: list[Member] = []
        for child_type, child in self._children(ElementType.RELATION):
            if child_type is ElementType.TAG:
                self._collect_tag(tags, child.attrs)
            elif child_type is ElementType.MEMBER:
                members.append(_parse_member(child.attrs))
            else:
                detail = f"relation {relation_id} contains {child.name!r}"
                raise ElementMalformedError(
                    ElementType.RELATION,
                    ErrorReason.ILLEGAL_NESTING,
                    detail,
                )

        return Relation(id=relation_id, tags=tags, members=members)


def _parse_member(attrs: dict[str, str]) -> Member:
    """
    Build a relation member from a member element's attributes.

    Parameters
    ----------
    attrs
        The member element's attributes.

    Returns
    -------
    member
    """
    try:
        member_type = _find_attribute("type", attrs)
        ref = _find_attribute("ref", attrs, int)
        role = _find_attribute("role", attrs)
    except AttributeLookupError as e:
        raise ElementMalformedError(ElementType.RELATION, e.reason, str(e)) from e

    kind = _MEMBER_KINDS.get(member_type.lower())
    if kind is None:
        detail = f"unknown member type {member_type!r}"
        raise ElementMalformedError(ElementType.RELATION, ErrorReason.MALFORMED_MEMBER, detail)

    return Member(reference=UnresolvedReference(kind, ref), role=role)
