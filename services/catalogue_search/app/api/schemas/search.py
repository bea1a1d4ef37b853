# app/api/schemas/search.py
#
# Description:
# This file defines the raw query parameters of the search, count, NLP search
# and list endpoints. List-valued parameters use the catalogue's bracket syntax
# (e.g. property=[id,tags]&value=[[a,b],[c]]) and are parsed by the search mapper.

from pydantic import BaseModel
from typing import Optional

class SearchParams(BaseModel):
    """
    Query parameters of /search and /count.
    """
    # Attribute search
    property: Optional[str] = None  # e.g. "[id,tags]"
    value: Optional[str] = None     # e.g. "[[a,b],[c]]"

    # Geo search
    geoproperty: Optional[str] = None  # e.g. "location"
    georel: Optional[str] = None       # "within", "intersects", "near"
    geometry: Optional[str] = None     # "Point", "Polygon", "LineString", "bbox"
    coordinates: Optional[str] = None  # JSON array
    max_distance: Optional[float] = None  # metres, for "near"

    # Text and tags
    q: Optional[str] = None
    tags: Optional[str] = None  # e.g. "[flood,rain]"

    # Temporal search
    timerel: Optional[str] = None  # "before", "after", "between", "during"
    time: Optional[str] = None
    endtime: Optional[str] = None
    timeproperty: Optional[str] = None

    # Numeric range search
    rangerel: Optional[str] = None
    rangeproperty: Optional[str] = None
    rangevalue: Optional[str] = None  # e.g. "[10,20]"

    # Response shaping and pagination
    filter: Optional[str] = None  # e.g. "[id,label]"
    limit: Optional[int] = None
    offset: Optional[int] = None
    page: Optional[int] = None

class ListParams(BaseModel):
    """
    Query parameters of /list/{itemType}.
    """
    limit: Optional[int] = None
    offset: Optional[int] = None
