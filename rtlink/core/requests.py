"""Typed request structs for the business wrappers on Connection.

Each struct validates itself before anything is sent and renders the
JSON-ready parameter the server expects (camelCase keys).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from rtlink.shared.errors import ConnectionUsageError
from rtlink.shared.utils import (
    is_integer,
    is_latitude,
    is_longitude,
    is_non_empty_string,
    is_non_empty_string_list,
    is_timestamp,
)

Timestamp = Union[int, float, str]


def _fail(request: str, detail: str) -> None:
    raise ConnectionUsageError(f"invalid {request} request: {detail}")


@dataclass
class ChannelQuery:
    """Restricts getRealTimeData / getMetadata to some channels."""
    channel_ids: List[str]

    def validate(self) -> "ChannelQuery":
        if not is_non_empty_string_list(self.channel_ids):
            _fail("channel", "channel_ids must be a list of non-empty strings")
        return self

    def to_params(self) -> Dict[str, Any]:
        return {"channelIds": list(self.channel_ids)}


@dataclass
class HistoricalDataQuery:
    channel_ids: List[str]
    begin_time: Timestamp
    end_time: Timestamp

    def validate(self) -> "HistoricalDataQuery":
        if not is_non_empty_string_list(self.channel_ids):
            _fail("historical data", "channel_ids must be a list of non-empty strings")
        if not is_timestamp(self.begin_time):
            _fail("historical data", "begin_time must be a number or a string")
        if not is_timestamp(self.end_time):
            _fail("historical data", "end_time must be a number or a string")
        return self

    def to_params(self) -> Dict[str, Any]:
        return {
            "channelIds": list(self.channel_ids),
            "beginTime": self.begin_time,
            "endTime": self.end_time,
        }


@dataclass
class Location:
    channel_id: str
    zoom: int
    lat: float
    lng: float

    def validate(self) -> "Location":
        if not isinstance(self.channel_id, str):
            _fail("location", "channel_id must be a string")
        if not is_integer(self.zoom):
            _fail("location", f"zoom must be an integer (channel {self.channel_id!r})")
        if not is_latitude(self.lat):
            _fail("location", f"lat must be a latitude in [-90, 90] (channel {self.channel_id!r})")
        if not is_longitude(self.lng):
            _fail("location", f"lng must be a longitude in [-180, 180] (channel {self.channel_id!r})")
        return self

    def to_params(self) -> Dict[str, Any]:
        return {"channelId": self.channel_id, "zoom": int(self.zoom), "lat": self.lat, "lng": self.lng}


def channel_query_params(request: Optional[ChannelQuery]) -> List[Any]:
    """Positional params for an optional channel query; null means all channels."""
    if request is None:
        return [None]
    if not isinstance(request, ChannelQuery):
        _fail("channel", f"expected ChannelQuery, got {type(request).__name__}")
    return [request.validate().to_params()]


def historical_params(request: HistoricalDataQuery) -> List[Any]:
    if not isinstance(request, HistoricalDataQuery):
        _fail("historical data", f"expected HistoricalDataQuery, got {type(request).__name__}")
    return [request.validate().to_params()]


def locations_params(locations: Sequence[Location]) -> List[Any]:
    if not isinstance(locations, (list, tuple)):
        _fail("location", "locations must be a list of Location")
    rendered = []
    for location in locations:
        if not isinstance(location, Location):
            _fail("location", f"expected Location, got {type(location).__name__}")
        rendered.append(location.validate().to_params())
    return [rendered]


def object_params(name: str, request: Mapping[str, Any]) -> List[Any]:
    """Positional params for setters that take an arbitrary object."""
    if not isinstance(request, Mapping):
        _fail(name, "request must be a mapping")
    if not all(is_non_empty_string(k) for k in request.keys()):
        _fail(name, "request keys must be non-empty strings")
    return [dict(request)]
