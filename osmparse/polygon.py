"""
Classify ways as areas (polygons) or lines based on their tags.

OSM has no dedicated area element: a way is an area if it is a closed ring or
if its tags say so. The rule table is based on the JSON linked to from
https://wiki.openstreetmap.org/wiki/Overpass_turbo/Polygon_Features
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING
from typing import NamedTuple

from . import settings

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .elements import Tag
    from .elements import Way


class Policy(Enum):
    """How a rule treats the values of its tag key."""

    ALL = "all"
    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"


class PolygonRule(NamedTuple):
    """A tag key's polygon policy and the values the policy lists."""

    policy: Policy
    values: frozenset[str] = frozenset()


def _all() -> PolygonRule:
    return PolygonRule(Policy.ALL)


def _whitelist(*values: str) -> PolygonRule:
    return PolygonRule(Policy.WHITELIST, frozenset(values))


def _blacklist(*values: str) -> PolygonRule:
    # the empty value is never an area
    return PolygonRule(Policy.BLACKLIST, frozenset((*values, "")))


POLYGON_RULES: Mapping[str, PolygonRule] = MappingProxyType(
    {
        "building": _all(),
        "highway": _whitelist("services", "rest_area", "escape", "elevator"),
        "natural": _blacklist("coastline", "cliff", "ridge", "arete", "tree_row"),
        "landuse": _all(),
        "waterway": _whitelist("riverbank", "dock", "boatyard", "dam"),
        "amenity": _all(),
        "leisure": _all(),
        "barrier": _whitelist("city_wall", "ditch", "hedge", "retaining_wall", "wall", "spikes"),
        "railway": _whitelist("station", "turntable", "roundhouse", "platform"),
        "area": _all(),
        "boundary": _all(),
        "man_made": _blacklist("cutline", "embankment", "pipeline"),
        "power": _whitelist("plant", "substation", "generator", "transformer"),
        "place": _all(),
        "shop": _all(),
        "aeroway": _blacklist("taxiway"),
        "tourism": _all(),
        "historic": _all(),
        "public_transport": _all(),
        "office": _all(),
        "building:part": _all(),
        "military": _all(),
        "ruins": _all(),
        "area:highway": _all(),
        "craft": _all(),
        "golf": _all(),
    },
)


def is_polygon(way: Way, *, closed_way_is_polygon: bool | None = None) -> bool:
    """
    Determine whether a way denotes an area rather than a line.

    A closed way (one whose first and last node references are equal) is
    always an area when the closed-loop check is enabled. Otherwise the way
    is an area if any of its tags has a rule in `POLYGON_RULES`, a value other
    than "no", and a value the rule's policy accepts. Tags whose key has no
    rule are ignored.

    Parameters
    ----------
    way
        The way to classify.
    closed_way_is_polygon
        Whether to apply the closed-loop check. If None, use
        `settings.closed_way_is_polygon`.

    Returns
    -------
    is_polygon
    """
    if closed_way_is_polygon is None:
        closed_way_is_polygon = settings.closed_way_is_polygon

    if closed_way_is_polygon and way.is_closed():
        return True

    return any(_tag_denotes_area(tag) for tag in way.tags)


def _tag_denotes_area(tag: Tag) -> bool:
    """
    Check a single tag against the rule table.

    Parameters
    ----------
    tag
        The tag to check.

    Returns
    -------
    denotes_area
    """
    rule = POLYGON_RULES.get(tag.key)
    if rule is None or tag.val == "no":
        return False

    if rule.policy is Policy.ALL:
        return True
    if rule.policy is Policy.WHITELIST:
        return tag.val in rule.values
    return tag.val not in rule.values
