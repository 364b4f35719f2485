"""
Global settings that can be configured by the user.

closed_way_is_polygon : bool
    If True, `polygon.is_polygon` treats any way whose node list starts and
    ends with the same node reference as a polygon, before consulting its
    tags. If False, only the way's tags are consulted, matching the older
    tag-only classification. Default is `True`.
default_encoding : str
    Character encoding used by `io.osm_from_xml` when none is passed. Default
    is `"utf-8"`.
log_console : bool
    If True, print log output to the console (terminal window). Default is
    `False`.
log_file : bool
    If True, save log output to a file in `logs_folder`. Default is `False`.
log_filename : str
    Name of the log file, without file extension. Default is `"osmparse"`.
log_level : int
    One of Python's `logger.level` constants. Default is `logging.INFO`.
log_name : str
    Name of the logger. Default is `"osmparse"`.
logs_folder : str | Path
    Path to folder in which to save log files. Default is `"./logs"`.
"""

from __future__ import annotations

import logging as lg
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

closed_way_is_polygon: bool = True
default_encoding: str = "utf-8"
log_console: bool = False
log_file: bool = False
log_filename: str = "osmparse"
log_level: int = lg.INFO
log_name: str = "osmparse"
logs_folder: str | Path = "./logs"
