"""
osmparse is a Python package to parse OpenStreetMap XML data into a typed,
queryable model of nodes, ways, and relations.

Use `parse` on a file object, path, or bytes, or `io.osm_from_xml` on a
(optionally compressed) file. Resolve the references held by ways and
relations with `OSM.resolve`, and classify ways as areas or lines with
`Way.is_polygon`.
"""

from importlib.metadata import version as metadata_version

# expose the package version
__version__ = metadata_version("osmparse")

# expose the package's public modules
from . import _errors as _errors
from . import convert as convert
from . import elements as elements
from . import io as io
from . import osm as osm
from . import polygon as polygon
from . import settings as settings
from . import utils as utils

# expose the core types and entry points
from ._errors import DocumentError as DocumentError
from ._errors import TokenizerError as TokenizerError
from .elements import UNRESOLVED as UNRESOLVED
from .elements import Bounds as Bounds
from .elements import ElementKind as ElementKind
from .elements import Member as Member
from .elements import Node as Node
from .elements import Reference as Reference
from .elements import Relation as Relation
from .elements import Tag as Tag
from .elements import UnresolvedReference as UnresolvedReference
from .elements import Way as Way
from .osm import OSM as OSM
from .osm import parse as parse
from .polygon import is_polygon as is_polygon
