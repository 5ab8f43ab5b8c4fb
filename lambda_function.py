"""AWS Lambda handler for connpass event search."""
import json
import logging
import os
import time
from typing import Dict, Any

import requests

from client.connpass_client import ConnpassClient
from client.exceptions import ResponseDecodeError
from client.query_builder import BASE_URL
from processor.models import DateSpec, Format, Order, QueryParams
from processor.response_decoder import encode_record


# Attributes every LogRecord carries; anything else came in through extra=
RESERVED_LOG_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in record.__dict__.items():
            if key not in RESERVED_LOG_ATTRS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


ORDER_NAMES = {
    'update': Order.UPDATE,
    'start': Order.START,
    'create': Order.CREATE
}

LIST_FIELDS = {
    'event_ids': int,
    'keywords_and': str,
    'keywords_or': str,
    'participant_nicknames': str,
    'owner_nicknames': str,
    'series_ids': int
}


def query_params_from_event(event: Dict[str, Any]) -> QueryParams:
    """
    Build search parameters from a Lambda event payload.

    Args:
        event: Payload with optional keys matching the QueryParams fields.
            ``dates`` is a list of {year, month, day} objects and ``order``
            is one of update/start/create or its number.

    Returns:
        QueryParams for the search

    Raises:
        TypeError: If the payload is not an object
        ValueError: If a value has the wrong type or is unknown
    """
    if not isinstance(event, dict):
        raise TypeError(f"Search payload must be an object, got {type(event).__name__}")

    kwargs = {}

    for name, item_type in LIST_FIELDS.items():
        values = event.get(name)
        if values is None:
            continue
        if isinstance(values, (str, int)):
            values = [values]
        kwargs[name] = [item_type(value) for value in values]

    dates = event.get('dates')
    if dates:
        kwargs['dates'] = [
            DateSpec(
                year=int(date['year']),
                month=int(date['month']),
                day=int(date['day']) if date.get('day') is not None else None
            )
            for date in dates
        ]

    for name in ('start', 'count'):
        if event.get(name) is not None:
            kwargs[name] = int(event[name])

    order = event.get('order')
    if order is not None:
        if isinstance(order, str) and order.lower() in ORDER_NAMES:
            kwargs['order'] = ORDER_NAMES[order.lower()]
        else:
            kwargs['order'] = Order(int(order))

    if event.get('format') is not None:
        kwargs['format'] = Format(event['format'])

    return QueryParams(**kwargs)


def _error_response(status_code: int, message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': status_code,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(duration, 2)
        })
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function for connpass event search.

    Args:
        event: Search payload (see query_params_from_event)
        context: Lambda context object

    Returns:
        Response dict with statusCode and the search results
    """
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
    base_url = os.environ.get('CONNPASS_BASE_URL', BASE_URL)

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    logger.info(
        "Lambda execution started",
        extra={
            'base_url': base_url,
            'timeout_seconds': timeout_seconds
        }
    )

    try:
        params = query_params_from_event({} if event is None else event)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Invalid search payload: {e}")
        return _error_response(400, 'Invalid search parameters', e, start_time)

    try:
        with ConnpassClient(base_url=base_url, timeout=timeout_seconds) as client:
            results = client.search_events(params)
    except requests.RequestException as e:
        logger.error(
            f"Request to connpass failed: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response(502, 'Failed to fetch events from connpass', e, start_time)
    except ResponseDecodeError as e:
        logger.error(
            f"Unexpected response from connpass: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response(502, 'Invalid response from connpass', e, start_time)
    except Exception as e:
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response(500, 'Search failed', e, start_time)

    duration = time.time() - start_time
    logger.info(
        "Lambda execution completed successfully",
        extra={
            'duration_seconds': round(duration, 2),
            'results_returned': results.results_returned,
            'results_available': results.results_available
        }
    )

    return {
        'statusCode': 200,
        'body': json.dumps({
            'message': 'Search completed successfully',
            'results': encode_record(results),
            'duration_seconds': round(duration, 2)
        }, ensure_ascii=False)
    }


if __name__ == '__main__':
    sample_event = {
        'keywords_and': ['golang'],
        'dates': [
            {'year': 2019, 'month': 1},
            {'year': 2019, 'month': 2}
        ],
        'start': 1,
        'order': 'start',
        'count': 2
    }
    response = lambda_handler(sample_event, None)
    print(json.dumps(json.loads(response['body']), indent=2, ensure_ascii=False))
