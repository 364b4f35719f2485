# ruff: noqa: PLR2004 SLF001
"""Test suite for the package."""

from __future__ import annotations

import bz2
import gzip
import io
import logging as lg
from pathlib import Path

import networkx as nx
import pandas as pd
import pytest

import osmparse as op
from osmparse._errors import AttributeLookupError
from osmparse._errors import BoundsInvalidError
from osmparse._errors import ElementMalformedError
from osmparse._errors import ErrorReason
from osmparse._errors import UnknownElementError
from osmparse._osm_xml import ElementType

op.settings.log_console = True
op.settings.log_file = True
op.settings.logs_folder = ".temp/logs"

input_data = Path(__file__).parent / "input_data"
bounds_file = input_data / "bounds.osm"
sample_file = input_data / "sample.osm"


def _doc(body: str) -> bytes:
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<osm version="0.6">{body}</osm>'.encode()


def _way(tags: dict[str, str] | list[tuple[str, str]] = (), nodes: list[int] = ()) -> op.Way:
    pairs = tags.items() if isinstance(tags, dict) else tags
    return op.Way(
        id=1234567,
        tags=[op.Tag(k, v) for k, v in pairs],
        nodes=[op.UnresolvedReference.node(n) for n in nodes],
    )


def test_logging() -> None:
    """Test the logger."""
    op.utils.log("test a fake default message")
    op.utils.log("test a fake debug", level=lg.DEBUG)
    op.utils.log("test a fake info", level=lg.INFO)
    op.utils.log("test a fake warning", level=lg.WARNING)
    op.utils.log("test a fake error", level=lg.ERROR)

    op.utils.ts(style="date")
    op.utils.ts(style="time")
    op.utils.ts(template="{:%Y}")
    with pytest.raises(ValueError, match="Invalid timestamp style"):
        op.utils.ts(style="iso8601")


def test_exceptions() -> None:
    """Test the custom errors."""
    message = "testing exception"

    with pytest.raises(op.TokenizerError):
        raise op.TokenizerError(message)

    err = ElementMalformedError(ElementType.WAY, ErrorReason.ILLEGAL_NESTING, "way 1")
    assert isinstance(err, op.DocumentError)
    assert err.kind is ElementType.WAY
    assert err.reason is ErrorReason.ILLEGAL_NESTING
    assert str(err) == "Malformed way: illegal nesting (way 1)"

    err_bounds = BoundsInvalidError(ErrorReason.MISSING_ATTRIBUTE)
    assert str(err_bounds) == "Invalid bounds: missing attribute"

    err_attr = AttributeLookupError("lat", ErrorReason.UNPARSABLE_FLOAT, "x")
    assert isinstance(err_attr, ValueError)
    assert err_attr.name == "lat"
    assert str(err_attr) == "Attribute 'lat': unparsable float 'x'"


def test_element_classifier() -> None:
    """Test mapping element names to element types."""
    classify = op._osm_xml._classify
    assert classify("bounds") is ElementType.BOUNDS
    assert classify("NODE") is ElementType.NODE
    assert classify("Way") is ElementType.WAY
    assert classify("relation") is ElementType.RELATION
    assert classify("tag") is ElementType.TAG
    assert classify("nd") is ElementType.NODE_REF
    assert classify("MEMBER") is ElementType.MEMBER

    for name in ("osm", "changeset", "node-ref", ""):
        with pytest.raises(UnknownElementError):
            classify(name)


def test_attribute_lookup() -> None:
    """Test finding and parsing attribute values."""
    find = op._osm_xml._find_attribute
    attrs = {"id": "-12", "lat": "54.0889580", "k": "name", "v": "", "bad": "1.5"}

    assert find("id", attrs, int) == -12
    assert find("lat", attrs, float) == 54.0889580
    assert find("k", attrs) == "name"
    assert find("v", attrs) == ""
    assert find("id", attrs) == "-12"

    with pytest.raises(AttributeLookupError) as exc_info:
        find("ID", attrs, int)
    assert exc_info.value.reason is ErrorReason.MISSING_ATTRIBUTE

    with pytest.raises(AttributeLookupError) as exc_info:
        find("bad", attrs, int)
    assert exc_info.value.reason is ErrorReason.UNPARSABLE_INT

    with pytest.raises(AttributeLookupError) as exc_info:
        find("k", attrs, float)
    assert exc_info.value.reason is ErrorReason.UNPARSABLE_FLOAT

    for value in (" 1", "1_000", "0x10", ""):
        with pytest.raises(AttributeLookupError):
            find("id", {"id": value}, int)

    # identifiers are 64-bit signed integers
    assert find("id", {"id": "9223372036854775807"}, int) == 2**63 - 1
    assert find("id", {"id": "-9223372036854775808"}, int) == -(2**63)
    for value in ("9223372036854775808", "-9223372036854775809"):
        with pytest.raises(AttributeLookupError) as exc_info:
            find("id", {"id": value}, int)
        assert exc_info.value.reason is ErrorReason.UNPARSABLE_INT

    # coordinates take no surrounding whitespace or digit separators
    assert find("lat", {"lat": "-1.5e2"}, float) == -150.0
    for value in (" 1", "1 ", "1_0.5", "\t2.0"):
        with pytest.raises(AttributeLookupError) as exc_info:
            find("lat", {"lat": value}, float)
        assert exc_info.value.reason is ErrorReason.UNPARSABLE_FLOAT

    osm = op.parse(
        _doc(
            '<node id="99999999999999999999999" lat="1" lon="1"/>'
            '<node id="1" lat=" 1_0.5 " lon="1"/>'
            '<node id="2" lat="1" lon="1_0"/>'
            '<node id="3" lat="1" lon="1"/>'
        )
    )
    assert sorted(osm.nodes) == [3]


def test_bounds() -> None:
    """Test parsing the document bounds."""
    osm = op.parse(bounds_file)
    assert len(osm.nodes) == 0
    assert len(osm.ways) == 0
    assert len(osm.relations) == 0
    assert osm.bounds == op.Bounds(54.0889580, 12.2487570, 54.0913900, 12.2524800)
    assert osm.bounds.minlat == 54.0889580
    assert osm.bounds.maxlon == 12.2524800

    osm = op.parse(
        _doc('<bounds minlat="54.08895" minlon="12.24875" maxlat="54.09139" maxlon="12.25248"/>')
    )
    assert osm.nodes == {}
    assert osm.bounds == op.Bounds(54.08895, 12.24875, 54.09139, 12.25248)

    # a bounds element missing any coordinate is absent, never partial
    coords = {"minlat": "1", "minlon": "2", "maxlat": "3", "maxlon": "4"}
    for missing in coords:
        attrs = " ".join(f'{k}="{v}"' for k, v in coords.items() if k != missing)
        osm = op.parse(_doc(f'<bounds {attrs}/><node id="1" lat="1" lon="1"/>'))
        assert osm.bounds is None
        assert list(osm.nodes) == [1]

    # an unparsable coordinate also resets bounds parsed earlier
    osm = op.parse(
        _doc(
            '<bounds minlat="1" minlon="2" maxlat="3" maxlon="4"/>'
            '<bounds minlat="1" minlon="x" maxlat="3" maxlon="4"/>'
        )
    )
    assert osm.bounds is None


def test_parse_sample() -> None:
    """Test parsing a document with well-formed and malformed elements."""
    osm = op.parse(sample_file)
    assert osm.summary() == {"bounds": 1, "nodes": 5, "ways": 4, "relations": 3}
    assert sorted(osm.nodes) == [1, 2, 3, 4, 5]
    assert sorted(osm.ways) == [100, 101, 102, 105]
    assert sorted(osm.relations) == [200, 201, 205]

    # tags keep their order and duplicates, lookups take the first value
    node = osm.nodes[1]
    assert node.lat == 54.0901746
    assert node.lon == 12.2482632
    assert [(t.key, t.val) for t in node.tags] == [
        ("highway", "crossing"),
        ("name", "first"),
        ("name", "second"),
    ]
    assert node.tag("name") == "first"
    assert node.tag("missing") is None
    assert node.tags_dict() == {"highway": "crossing", "name": "first"}

    # a malformed tag is dropped but its node is kept
    assert osm.nodes[4].tags == [op.Tag("amenity", "bench")]

    # element names are case-insensitive
    assert osm.nodes[5] == op.Node(id=5, lat=-0.5, lon=0.001, tags=[])

    # the node nested inside the discarded way 104 is discarded too
    assert 50 not in osm.nodes

    # records nested inside a discarded record are discarded with it
    assert 11 not in osm.nodes
    assert 107 not in osm.ways

    # an unparsable node reference discards its way
    assert 106 not in osm.ways

    # malformed tags are dropped from ways and relations too
    assert osm.ways[105].tags == [op.Tag("highway", "escape")]
    assert osm.relations[200].tags == [op.Tag("type", "multipolygon")]

    way = osm.ways[100]
    assert way.nodes == [op.UnresolvedReference.node(n) for n in (1, 2, 3, 1)]
    assert way.tags == [op.Tag("building", "yes")]
    assert way.is_closed()
    assert not osm.ways[101].is_closed()

    relation = osm.relations[200]
    assert relation.tag("type") == "multipolygon"
    assert relation.members == [
        op.Member(op.UnresolvedReference.node(1), ""),
        op.Member(op.UnresolvedReference.way(100), "outer"),
        op.Member(op.UnresolvedReference.relation(201), "sub"),
    ]
    assert [m.kind for m in relation.members] == [
        op.ElementKind.NODE,
        op.ElementKind.WAY,
        op.ElementKind.RELATION,
    ]

    # member types are case-insensitive
    assert osm.relations[201].members == [op.Member(op.UnresolvedReference.way(101), "x")]


def test_parse_sources() -> None:
    """Test the accepted kinds of document source."""
    data = bounds_file.read_bytes()
    expected = op.parse(bounds_file).bounds

    assert op.parse(data).bounds == expected
    assert op.parse(str(bounds_file)).bounds == expected
    assert op.parse(io.BytesIO(data)).bounds == expected
    assert op.parse(io.StringIO(data.decode())).bounds == expected
    assert op.OSM.parse(data).bounds == expected

    with bounds_file.open("rb") as f:
        assert op.parse(f).bounds == expected


def test_recovery() -> None:
    """Test that element-level failures discard only the offending element."""
    osm = op.parse(
        _doc(
            '<node id="1" lat="1" lon="1"/>'
            '<node id="2" lat="2" lon="2"><way id="9"><nd ref="1"/></way></node>'
            '<node id="3" lat="3" lon="3"/>'
        )
    )
    assert sorted(osm.nodes) == [1, 3]
    assert osm.ways == {}

    children = (
        '<relation id="9"/>',
        '<node id="9" lat="0" lon="0"/>',
        '<member type="node" ref="1" role=""/>',
        '<bounds minlat="1" minlon="1" maxlat="1" maxlon="1"/>',
    )
    for child in children:
        body = f'<node id="2" lat="2" lon="2">{child}</node><node id="3" lat="3" lon="3"/>'
        osm = op.parse(_doc(body))
        assert sorted(osm.nodes) == [3]
        assert osm.bounds is None

    osm = op.parse(_doc('<way id="1"><member type="node" ref="1" role=""/></way><way id="2"/>'))
    assert sorted(osm.ways) == [2]

    osm = op.parse(_doc('<way id="x"><nd ref="1"/></way><way id="2"><nd ref="1"/></way>'))
    assert sorted(osm.ways) == [2]

    osm = op.parse(_doc('<relation id="1"><way id="2"/></relation><relation id="3"/>'))
    assert sorted(osm.relations) == [3]
    assert osm.ways == {}

    # a record discarded before its children are read takes its subtree with it
    osm = op.parse(
        _doc(
            '<node id="bad" lat="1" lon="1"><way id="9"><nd ref="1"/></way></node>'
            '<way id="1"><nd/><node id="7" lat="1" lon="1"/></way>'
            '<relation id="2"><member type="area" ref="1" role=""/>'
            '<relation id="3"/><way id="4"/></relation>'
        )
    )
    assert osm.nodes == {}
    assert osm.ways == {}
    assert osm.relations == {}

    # nested elements with the same name do not end the discarded record early
    osm = op.parse(
        _doc(
            '<way id="x"><way id="5"><nd ref="1"/></way><nd ref="2"/></way>'
            '<node id="8" lat="8" lon="8"/>'
            '<way id="6"><nd ref="8"/></way>'
        )
    )
    assert sorted(osm.nodes) == [8]
    assert sorted(osm.ways) == [6]
    assert osm.ways[6].nodes == [op.UnresolvedReference.node(8)]

    # top-level children and unknown elements are ignored
    osm = op.parse(_doc('<tag k="a" v="b"/><nd ref="1"/><member/><note>hi</note><way id="1"/>'))
    assert sorted(osm.ways) == [1]
    assert osm.ways[1].nodes == []

    # duplicate ids keep the last occurrence
    osm = op.parse(_doc('<node id="1" lat="1" lon="1"/><node id="1" lat="2" lon="2"/>'))
    assert len(osm.nodes) == 1
    assert osm.nodes[1].lat == 2.0

    # an empty document yields an empty model
    osm = op.parse(b"<osm/>")
    assert osm.summary() == {"bounds": 0, "nodes": 0, "ways": 0, "relations": 0}


def test_tokenizer_errors() -> None:
    """Test that malformed XML aborts the whole parse."""
    broken = (
        b'<osm><node id="1" lat="1" lon="1"></osm>',
        b'<osm><node id="1" lat="1" lon="1">',
        b'<osm><node id="1" lat="1" lon="1"/>',
        b"",
        b"not xml at all",
    )
    for data in broken:
        with pytest.raises(op.TokenizerError):
            op.parse(data)


def test_resolve() -> None:
    """Test resolving references against the model."""
    osm = op.parse(sample_file)

    node_ref = op.UnresolvedReference.node(1)
    ref = osm.resolve(node_ref)
    assert ref
    assert ref.is_resolved
    assert ref.kind is op.ElementKind.NODE
    assert ref.element is osm.nodes[1]
    assert ref == osm.resolve(node_ref)
    assert repr(ref) == "Reference(node, id=1)"

    assert osm.resolve(op.UnresolvedReference.way(100)).element is osm.ways[100]
    assert osm.resolve(op.UnresolvedReference.relation(201)).element is osm.relations[201]

    # id namespaces are independent
    assert osm.resolve(op.UnresolvedReference.way(1)) is op.UNRESOLVED
    assert osm.resolve(op.UnresolvedReference.node(100)) is op.UNRESOLVED
    unresolved = osm.resolve(op.UnresolvedReference.node(99))
    assert not unresolved
    assert unresolved.element is None
    assert repr(unresolved) == "Reference.UNRESOLVED"

    # every node of a way whose nodes are all loaded resolves
    refs = osm.resolve_way_nodes(osm.ways[100])
    assert all(refs)
    assert [r.element.id for r in refs] == [1, 2, 3, 1]

    # resolution does not mutate the model
    before = osm.summary()
    for member in osm.relations[200].members:
        assert osm.resolve(member.reference)
    assert osm.summary() == before

    dangling = [(owner.id, ref.kind, ref.id) for owner, ref in osm.unresolved_references()]
    assert dangling == [(102, op.ElementKind.NODE, 99), (205, op.ElementKind.WAY, 404)]


def test_polygon_rules() -> None:
    """Test the polygon rule table."""
    rules = op.polygon.POLYGON_RULES
    assert len(rules) == 26
    assert rules["building"].policy is op.polygon.Policy.ALL
    assert rules["highway"].policy is op.polygon.Policy.WHITELIST
    assert rules["natural"].policy is op.polygon.Policy.BLACKLIST
    assert "wall" in rules["barrier"].values
    with pytest.raises(TypeError):
        rules["indoor"] = rules["building"]  # type: ignore[index]


def test_is_polygon() -> None:
    """Test classifying ways as areas or lines."""
    assert not op.is_polygon(_way())

    # closed loop
    assert op.is_polygon(_way(nodes=[1, 2, 3, 26, 1]))
    assert not op.is_polygon(_way(nodes=[1, 2, 3, 26, 1]), closed_way_is_polygon=False)
    assert not op.is_polygon(_way(nodes=[1, 2, 3]))
    assert op.is_polygon(_way(nodes=[1]))

    # all
    assert op.is_polygon(_way({"building": "yes"}))
    assert op.is_polygon(_way({"building": "this_is_not_valid"}))
    assert op.is_polygon(_way({"building": ""}))

    # whitelist
    assert op.is_polygon(_way({"highway": "escape"}))
    assert not op.is_polygon(_way({"highway": "footway"}))
    assert not op.is_polygon(_way({"highway": ""}))
    assert op.is_polygon(_way([("highway", "footway"), ("highway", "escape")]))
    assert op.is_polygon(_way({"highway": "escape"}, nodes=[1, 2, 3]))

    # blacklist
    assert not op.is_polygon(_way({"natural": "cliff"}))
    assert op.is_polygon(_way({"natural": "tree"}))
    assert not op.is_polygon(_way({"natural": ""}))
    assert op.is_polygon(_way([("natural", "cliff"), ("natural", "tree")]))
    assert op.is_polygon(_way({"natural": "tree"}, nodes=[1, 2, 3]))

    # keys without a rule are inert
    assert not op.is_polygon(_way({"name": "Main Street", "oneway": "yes"}))
    assert op.is_polygon(_way({"name": "Main Street", "landuse": "grass"}))

    # "no" never denotes an area
    for key in op.polygon.POLYGON_RULES:
        assert not op.is_polygon(_way({key: "no"}))
    assert op.is_polygon(_way({key: "no"}, nodes=[5, 6, 5]))

    # the Way method and the settings default
    assert _way({"natural": "tree"}).is_polygon()
    closed = _way({"highway": "footway"}, nodes=[1, 2, 1])
    assert closed.is_polygon()
    try:
        op.settings.closed_way_is_polygon = False
        assert not closed.is_polygon()
        assert closed.is_polygon(closed_way_is_polygon=True)
    finally:
        op.settings.closed_way_is_polygon = True


def test_polygons_and_lines() -> None:
    """Test partitioning a model's ways by classification."""
    osm = op.parse(sample_file)
    assert [w.id for w in osm.polygons()] == [100, 105]
    assert [w.id for w in osm.lines()] == [101, 102]


def test_osm_from_xml(tmp_path: Path) -> None:
    """Test loading plain and compressed files."""
    data = sample_file.read_bytes()
    gz_file = tmp_path / "sample.osm.gz"
    bz2_file = tmp_path / "sample.osm.bz2"
    gz_file.write_bytes(gzip.compress(data))
    bz2_file.write_bytes(bz2.compress(data))

    for filepath in (sample_file, str(sample_file), gz_file, bz2_file):
        osm = op.io.osm_from_xml(filepath)
        assert osm.summary() == {"bounds": 1, "nodes": 5, "ways": 4, "relations": 3}

    osm = op.io.osm_from_xml(bounds_file, encoding="utf-8")
    assert osm.bounds is not None

    with pytest.raises(FileNotFoundError):
        op.io.osm_from_xml(tmp_path / "missing.osm")


def test_to_dataframes() -> None:
    """Test converting a model to DataFrames."""
    osm = op.parse(sample_file)
    df_nodes, df_ways, df_relations = op.convert.to_dataframes(osm)

    assert isinstance(df_nodes, pd.DataFrame)
    assert sorted(df_nodes.index) == [1, 2, 3, 4, 5]
    assert df_nodes.loc[1, "name"] == "first"
    assert df_nodes.loc[1, "lon"] == 12.2482632
    assert pd.isna(df_nodes.loc[2, "name"])

    assert sorted(df_ways.index) == [100, 101, 102, 105]
    assert df_ways.loc[100, "nodes"] == [1, 2, 3, 1]
    assert bool(df_ways.loc[100, "is_polygon"])
    assert not bool(df_ways.loc[101, "is_polygon"])
    assert df_ways.loc[101, "highway"] == "footway"

    assert df_relations.loc[200, "members"][1] == ("way", 100, "outer")
    assert df_relations.loc[200, "type"] == "multipolygon"

    df_nodes, df_ways, df_relations = op.convert.to_dataframes(op.parse(bounds_file))
    assert len(df_nodes) == 0
    assert list(df_nodes.columns) == ["lat", "lon"]
    assert len(df_ways) == 0
    assert len(df_relations) == 0


def test_to_digraph() -> None:
    """Test converting a model to a NetworkX graph."""
    osm = op.parse(sample_file)
    G = op.convert.to_digraph(osm)

    assert isinstance(G, nx.MultiDiGraph)
    assert set(G.nodes) == {1, 2, 3}
    assert len(G.edges) == 5
    assert G.nodes[1]["x"] == 12.2482632
    assert G.nodes[1]["y"] == 54.0901746
    assert G.nodes[1]["name"] == "first"

    edge = G.edges[1, 2, 100]
    assert edge["osmid"] == 100
    assert edge["building"] == "yes"
    assert edge["is_polygon"]
    assert not G.edges[1, 2, 101]["is_polygon"]
    assert G.has_edge(3, 1, key=100)
    assert G.has_edge(2, 3, key=105)
    assert G.graph["bounds"] == (54.0889580, 12.2487570, 54.0913900, 12.2524800)

    assert len(op.convert.to_digraph(op.OSM())) == 0
