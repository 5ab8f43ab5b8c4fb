"""Query string construction for the connpass event search endpoint."""
import logging
from typing import Iterable, List, Tuple
from urllib.parse import urlencode, urlsplit, urlunsplit

from client.exceptions import ConfigurationError
from processor.models import DateSpec, QueryParams

logger = logging.getLogger(__name__)

BASE_URL = "https://connpass.com/api/v1/event/"

# The upstream client rejects December; pass max_month=12 to accept it.
LEGACY_MAX_MONTH = 11


def build_url(
    params: QueryParams,
    base_url: str = BASE_URL,
    max_month: int = LEGACY_MAX_MONTH
) -> str:
    """
    Build the search URL for the given parameters.

    Args:
        params: Search parameters
        base_url: Endpoint the query string is appended to
        max_month: Highest month accepted in date filters

    Returns:
        base_url with the encoded query string

    Raises:
        ConfigurationError: If base_url is malformed
    """
    parts = parse_url(base_url)

    query: List[Tuple[str, str]] = []
    _add_list(query, 'event_id', params.event_ids)
    _add_list(query, 'keyword', params.keywords_and)
    _add_list(query, 'keyword_or', params.keywords_or)
    _add_dates(query, params.dates, max_month)
    _add_list(query, 'nickname', params.participant_nicknames)
    _add_list(query, 'owner_nickname', params.owner_nicknames)
    _add_list(query, 'series_id', params.series_ids)

    if params.start is not None:
        query.append(('start', str(params.start)))
    if params.order is not None:
        query.append(('order', str(int(params.order))))
    if params.count is not None:
        query.append(('count', str(params.count)))
    if params.format is not None:
        query.append(('format', getattr(params.format, 'value', params.format)))

    if not query:
        return base_url

    return urlunsplit(parts._replace(query=urlencode(query, safe=',')))


def parse_url(url: str):
    """
    Split an absolute URL, rejecting anything without a scheme and host.

    Raises:
        ConfigurationError: If the URL is malformed
    """
    try:
        parts = urlsplit(url)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid URL {url!r}: {e}") from e
    if parts.scheme not in ('http', 'https') or not parts.netloc:
        raise ConfigurationError(f"Invalid URL {url!r}: scheme and host are required")
    return parts


def split_dates(dates: Iterable[DateSpec], max_month: int = LEGACY_MAX_MONTH) -> Tuple[List[str], List[str]]:
    """
    Sort date filters into exact-day and whole-month buckets.

    Entries with a non-positive year or a month outside 1..max_month are
    dropped.

    Returns:
        Tuple of (YYYYMMDD strings, YYYYMM strings)
    """
    ymd = []
    ym = []
    for date in dates:
        if date.year <= 0 or not 1 <= date.month <= max_month:
            logger.debug(f"Dropping invalid date filter: {date}")
            continue
        if date.day is not None and date.day > 0:
            ymd.append(f"{date.year:04d}{date.month:02d}{date.day:02d}")
        else:
            ym.append(f"{date.year:04d}{date.month:02d}")
    return ymd, ym


def _add_list(query: List[Tuple[str, str]], key: str, values: Iterable) -> None:
    values = [str(value) for value in values or ()]
    if values:
        query.append((key, ','.join(values)))


def _add_dates(query: List[Tuple[str, str]], dates: Iterable[DateSpec], max_month: int) -> None:
    ymd, ym = split_dates(dates or (), max_month)
    if ymd:
        query.append(('ymd', ','.join(ymd)))
    if ym:
        query.append(('ym', ','.join(ym)))
