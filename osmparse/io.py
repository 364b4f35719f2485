"""Load OSM XML files from disk."""

from __future__ import annotations

import bz2
import gzip
import logging as lg
from pathlib import Path
from typing import TYPE_CHECKING

from . import settings
from . import utils
from .osm import parse

if TYPE_CHECKING:
    from .osm import OSM

# openers for compressed files, by file suffix
_OPENERS = {".bz2": bz2.open, ".gz": gzip.open}


def osm_from_xml(filepath: str | Path, *, encoding: str | None = None) -> OSM:
    """
    Load a map model from an OSM XML file.

    Files ending in `.bz2` or `.gz` are decompressed on the fly.

    Parameters
    ----------
    filepath
        Path to file containing OSM XML data.
    encoding
        The file's character encoding. If None, use
        `settings.default_encoding`.

    Returns
    -------
    osm
    """
    if encoding is None:
        encoding = settings.default_encoding
    filepath = Path(filepath)

    opener = _OPENERS.get(filepath.suffix, open)
    with opener(filepath, mode="rt", encoding=encoding) as file:
        osm = parse(file)

    msg = f"Loaded OSM XML file {str(filepath)!r}"
    utils.log(msg, level=lg.INFO)
    return osm
