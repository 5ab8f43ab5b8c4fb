"""Data models for connpass event search."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import List, Optional


class Order(IntEnum):
    """Sort order accepted by the ``order`` query key."""
    UPDATE = 1  # by updated time
    START = 2  # by start time
    CREATE = 3  # newest first


class Format(str, Enum):
    """Response format accepted by the ``format`` query key."""
    JSON = 'json'


@dataclass(frozen=True)
class DateSpec:
    """A date filter: exact day when ``day`` is set, whole month otherwise."""
    year: int
    month: int
    day: Optional[int] = None


@dataclass(frozen=True)
class QueryParams:
    """Search parameters. Empty lists and None values are left out of the query."""
    event_ids: List[int] = field(default_factory=list)
    keywords_and: List[str] = field(default_factory=list)
    keywords_or: List[str] = field(default_factory=list)
    dates: List[DateSpec] = field(default_factory=list)
    participant_nicknames: List[str] = field(default_factory=list)
    owner_nicknames: List[str] = field(default_factory=list)
    series_ids: List[int] = field(default_factory=list)
    start: Optional[int] = None
    order: Optional[Order] = None
    count: Optional[int] = None
    format: Optional[Format] = None


@dataclass
class Series:
    """Recurring event group an event belongs to."""
    id: int = 0
    title: str = ''
    url: str = ''


@dataclass
class Event:
    """Single event as returned by the API."""
    event_id: int = 0
    title: str = ''
    catch: str = ''
    description: str = ''
    event_url: str = ''
    hash_tag: str = ''
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    limit: int = 0
    event_type: str = ''
    series: Series = field(default_factory=Series)
    address: str = ''
    place: str = ''
    lat: str = ''
    lon: str = ''
    owner_id: int = 0
    owner_nickname: str = ''
    owner_display_name: str = ''
    accepted: int = 0
    waiting: int = 0
    updated_at: Optional[datetime] = None


@dataclass
class Results:
    """Response envelope of the event search endpoint."""
    results_returned: int = 0
    results_available: int = 0
    results_start: int = 0
    events: List[Event] = field(default_factory=list)
