"""Convert a parsed map model to DataFrames or a NetworkX graph."""

from __future__ import annotations

import logging as lg
from typing import TYPE_CHECKING
from typing import Any

import networkx as nx
import pandas as pd

from . import utils

if TYPE_CHECKING:
    from .osm import OSM


def to_dataframes(osm: OSM) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Convert a map model to node, way, and relation DataFrames.

    Each DataFrame is indexed by element ID and has one column per tag key.
    Repeated tag keys keep their first value. The ways DataFrame also has a
    `nodes` column (list of node IDs) and an `is_polygon` column. The
    relations DataFrame also has a `members` column of `(type, ref, role)`
    tuples.

    Parameters
    ----------
    osm
        The parsed map model.

    Returns
    -------
    df_nodes, df_ways, df_relations
    """
    node_rows = [
        _row({"id": node.id, "lat": node.lat, "lon": node.lon}, node.tags_dict())
        for node in osm.nodes.values()
    ]
    way_rows = [
        _row(
            {
                "id": way.id,
                "nodes": [ref.id for ref in way.nodes],
                "is_polygon": way.is_polygon(),
            },
            way.tags_dict(),
        )
        for way in osm.ways.values()
    ]
    relation_rows = [
        _row(
            {
                "id": relation.id,
                "members": [(m.kind.value, m.reference.id, m.role) for m in relation.members],
            },
            relation.tags_dict(),
        )
        for relation in osm.relations.values()
    ]

    df_nodes = _make_df(node_rows, ["id", "lat", "lon"])
    df_ways = _make_df(way_rows, ["id", "nodes", "is_polygon"])
    df_relations = _make_df(relation_rows, ["id", "members"])

    msg = "Converted map model to node/way/relation DataFrames"
    utils.log(msg, level=lg.INFO)
    return df_nodes, df_ways, df_relations


def _row(fixed: dict[str, Any], tags: dict[str, str]) -> dict[str, Any]:
    # tags never overwrite the fixed columns
    row = dict(fixed)
    row.update((k, v) for k, v in tags.items() if k not in fixed)
    return row


def _make_df(rows: list[dict[str, Any]], columns: list[str]) -> pd.DataFrame:
    # keep the fixed columns even when there are no rows
    df = pd.DataFrame(rows, columns=None if rows else columns)
    return df.set_index("id")


def to_digraph(osm: OSM) -> nx.MultiDiGraph:
    """
    Convert a map model to a NetworkX MultiDiGraph of its ways.

    Each node that is referenced by a way becomes a graph node with `x`
    (longitude) and `y` (latitude) attributes plus its tags. Each consecutive
    pair of a way's resolved node references becomes an edge keyed by the
    way's ID, with `osmid`, `is_polygon`, and the way's tags as attributes.
    Unresolved node references are skipped.

    Parameters
    ----------
    osm
        The parsed map model.

    Returns
    -------
    G
    """
    G = nx.MultiDiGraph()
    if osm.bounds is not None:
        G.graph["bounds"] = (
            osm.bounds.minlat,
            osm.bounds.minlon,
            osm.bounds.maxlat,
            osm.bounds.maxlon,
        )

    skipped = 0
    for way in osm.ways.values():
        nodes = []
        for reference in osm.resolve_way_nodes(way):
            if reference:
                nodes.append(reference.element)
            else:
                skipped += 1

        G.add_nodes_from(
            (node.id, {**node.tags_dict(), "x": node.lon, "y": node.lat}) for node in nodes
        )

        # zip path nodes to get (u, v) tuples like [(0,1), (1,2), (2,3)]
        attrs = {**way.tags_dict(), "osmid": way.id, "is_polygon": way.is_polygon()}
        G.add_edges_from((u.id, v.id, way.id, attrs) for u, v in zip(nodes[:-1], nodes[1:]))

    if skipped > 0:
        msg = f"Skipped {skipped:,} unresolved node references"
        utils.log(msg, level=lg.WARNING)

    msg = f"Created graph with {len(G):,} nodes and {len(G.edges):,} edges"
    utils.log(msg, level=lg.INFO)
    return G
