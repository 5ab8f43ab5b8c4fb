"""Conversion between API JSON payloads and the dataclass records."""
import dataclasses
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from client.exceptions import ResponseDecodeError

logger = logging.getLogger(__name__)

T = TypeVar('T')

_NoneType = type(None)


def decode_into(cls: Type[T], payload: Any) -> T:
    """
    Build a dataclass instance from parsed JSON.

    Keys are matched to field names. Unknown keys are ignored, missing keys
    and nulls keep the field default.

    Args:
        cls: Dataclass type to build
        payload: Parsed JSON value (normally a dict)

    Returns:
        Instance of cls

    Raises:
        ResponseDecodeError: If the payload does not match the shape of cls
    """
    return _decode_value(cls, payload, cls.__name__)


def encode_record(value: Any) -> Any:
    """
    Convert a record into JSON-compatible data.

    Args:
        value: Dataclass instance, list, datetime, enum or plain value

    Returns:
        Value that json.dumps accepts, using the same keys decode_into reads
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: encode_record(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, (list, tuple)):
        return [encode_record(item) for item in value]
    if isinstance(value, dict):
        return {key: encode_record(item) for key, item in value.items()}
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def _decode_value(tp: Any, value: Any, path: str) -> Any:
    origin = get_origin(tp)

    if origin is Union:
        args = [arg for arg in get_args(tp) if arg is not _NoneType]
        if value is None:
            return None
        if len(args) == 1:
            return _decode_value(args[0], value, path)
        for arg in args:
            try:
                return _decode_value(arg, value, path)
            except ResponseDecodeError:
                continue
        raise ResponseDecodeError(f"{path}: {value!r} matches none of {args}")

    if origin in (list, tuple):
        if not isinstance(value, list):
            raise ResponseDecodeError(f"{path}: expected array, got {type(value).__name__}")
        item_type = (get_args(tp) or (Any,))[0]
        return [
            _decode_value(item_type, item, f"{path}[{index}]")
            for index, item in enumerate(value)
        ]

    if dataclasses.is_dataclass(tp):
        return _decode_dataclass(tp, value, path)

    if tp is datetime:
        return _decode_datetime(value, path)

    if tp is Any:
        return value

    if tp is bool:
        if not isinstance(value, bool):
            raise ResponseDecodeError(f"{path}: expected boolean, got {value!r}")
        return value

    if tp is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ResponseDecodeError(f"{path}: expected integer, got {value!r}")
        return value

    if tp is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ResponseDecodeError(f"{path}: expected number, got {value!r}")
        return float(value)

    if tp is str:
        if not isinstance(value, str):
            raise ResponseDecodeError(f"{path}: expected string, got {value!r}")
        return value

    if isinstance(tp, type) and issubclass(tp, Enum):
        try:
            return tp(value)
        except ValueError as e:
            raise ResponseDecodeError(f"{path}: {e}") from e

    return value


def _decode_dataclass(cls: Any, value: Any, path: str) -> Any:
    if not isinstance(value, dict):
        raise ResponseDecodeError(f"{path}: expected object, got {type(value).__name__}")

    hints = get_type_hints(cls)
    kwargs = {}
    for f in dataclasses.fields(cls):
        if not f.init or f.name not in value:
            continue
        raw = value[f.name]
        field_type = hints.get(f.name, Any)
        # JSON null leaves non-optional fields at their default
        if raw is None and not _is_optional(field_type):
            continue
        kwargs[f.name] = _decode_value(field_type, raw, f"{path}.{f.name}")

    unknown = set(value) - {f.name for f in dataclasses.fields(cls)}
    if unknown:
        logger.debug(f"Ignoring unknown keys in {path}: {sorted(unknown)}")

    return cls(**kwargs)


def _decode_datetime(value: Any, path: str) -> Any:
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise ResponseDecodeError(f"{path}: expected timestamp string, got {value!r}")
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ResponseDecodeError(f"{path}: invalid timestamp {value!r}") from e


def _is_optional(tp: Any) -> bool:
    return tp is Any or (get_origin(tp) is Union and _NoneType in get_args(tp))
