"""Parse OSM XML into a map model and resolve references between elements."""

from __future__ import annotations

import logging as lg
from typing import TYPE_CHECKING
from typing import Any

from . import utils
from ._osm_xml import _OSMEventParser
from .elements import UNRESOLVED
from .elements import ElementKind
from .elements import Reference

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path
    from typing import IO

    from .elements import Bounds
    from .elements import Node
    from .elements import Relation
    from .elements import UnresolvedReference
    from .elements import Way


class OSM:
    """
    The parsed contents of one OSM XML document.

    Nodes, ways, and relations are each stored in a dict keyed by ID, so the
    three ID namespaces are independent. The model is built once by `parse`
    and is not meant to be mutated afterwards.

    Parameters
    ----------
    bounds
        The document's declared extent, or None if absent or invalid.
    nodes
        Nodes keyed by ID.
    ways
        Ways keyed by ID.
    relations
        Relations keyed by ID.
    """

    def __init__(
        self,
        bounds: Bounds | None = None,
        nodes: dict[int, Node] | None = None,
        ways: dict[int, Way] | None = None,
        relations: dict[int, Relation] | None = None,
    ) -> None:
        self.bounds = bounds
        self.nodes: dict[int, Node] = {} if nodes is None else nodes
        self.ways: dict[int, Way] = {} if ways is None else ways
        self.relations: dict[int, Relation] = {} if relations is None else relations

    def __repr__(self) -> str:
        return (
            f"OSM(bounds={self.bounds!r}, nodes={len(self.nodes)}, "
            f"ways={len(self.ways)}, relations={len(self.relations)})"
        )

    @classmethod
    def parse(cls, source: IO[Any] | str | Path | bytes) -> OSM:
        """
        Parse an OSM XML document. See the module-level `parse` function.

        Parameters
        ----------
        source
            File object, path, or raw bytes of the document.

        Returns
        -------
        osm
        """
        return parse(source)

    def resolve(self, reference: UnresolvedReference) -> Reference:
        """
        Look up the element a reference points to.

        Parameters
        ----------
        reference
            The reference to resolve. Its kind selects the ID namespace.

        Returns
        -------
        reference
            A `Reference` to the stored element, or `UNRESOLVED` if no element
            of that kind has that ID.
        """
        collection: dict[int, Any]
        if reference.kind is ElementKind.NODE:
            collection = self.nodes
        elif reference.kind is ElementKind.WAY:
            collection = self.ways
        elif reference.kind is ElementKind.RELATION:
            collection = self.relations
        else:  # pragma: no cover
            msg = f"Invalid reference kind {reference.kind!r}."
            raise ValueError(msg)

        element = collection.get(reference.id)
        if element is None:
            return UNRESOLVED
        return Reference(reference.kind, element)

    def resolve_way_nodes(self, way: Way) -> list[Reference]:
        """
        Resolve a way's node references, in order.

        Parameters
        ----------
        way
            The way whose node list to resolve.

        Returns
        -------
        references
        """
        return [self.resolve(ref) for ref in way.nodes]

    def unresolved_references(self) -> Iterator[tuple[Way | Relation, UnresolvedReference]]:
        """
        Iterate over the dangling references of all ways and relations.

        Yields
        ------
        owner, reference
            The way or relation holding the reference, and the reference.
        """
        for way in self.ways.values():
            for ref in way.nodes:
                if not self.resolve(ref):
                    yield way, ref
        for relation in self.relations.values():
            for member in relation.members:
                if not self.resolve(member.reference):
                    yield relation, member.reference

    def polygons(self) -> list[Way]:
        """Return the ways classified as areas."""
        return [way for way in self.ways.values() if way.is_polygon()]

    def lines(self) -> list[Way]:
        """Return the ways classified as lines."""
        return [way for way in self.ways.values() if not way.is_polygon()]

    def summary(self) -> dict[str, int]:
        """
        Count the elements in the model.

        Returns
        -------
        counts
        """
        return {
            "bounds": int(self.bounds is not None),
            "nodes": len(self.nodes),
            "ways": len(self.ways),
            "relations": len(self.relations),
        }


def parse(source: IO[Any] | str | Path | bytes) -> OSM:
    """
    Parse an OSM XML document into a map model.

    Malformed tags are dropped from their element. Malformed or illegally
    nested nodes, ways, and relations are discarded along with everything
    inside them, and an invalid bounds element leaves `OSM.bounds` as None.
    Parsing always continues past such element-level problems. Malformed XML
    syntax raises `TokenizerError` and no model is returned.

    Parameters
    ----------
    source
        A binary or text file object, a path to a file, or the raw bytes of
        the document. A `str` is treated as a path.

    Returns
    -------
    osm
    """
    utils.log("Parsing OSM XML document...", level=lg.INFO)
    parser = _OSMEventParser(source)
    parser.run()

    osm = OSM(
        bounds=parser.bounds,
        nodes=parser.nodes,
        ways=parser.ways,
        relations=parser.relations,
    )
    msg = (
        f"Parsed {len(osm.nodes):,} nodes, {len(osm.ways):,} ways, and "
        f"{len(osm.relations):,} relations ({parser.discarded:,} discarded)"
    )
    utils.log(msg, level=lg.INFO)
    return osm
