"""Request descriptors and the JSON encoding/decoding applied around each exchange."""

import dataclasses
import functools
import json
import typing
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import TypeAdapter

from ..clients.errors import DeserializationError, SerializationError
from ..clients.headers import HeaderMap

DEFAULT_CONTENT_TYPE = "application/json;charset=UTF-8"


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclasses.dataclass(frozen=True)
class RequestDescriptor:
    """Everything the executor needs to perform one logical request.

    Attributes:
        method: The HTTP method.
        url: The absolute request URL.
        headers: Request headers. The executor works on a copy.
        body: Any JSON-serializable value, or None for no body.
        result_sink: Mutable destination for the decoded response, or None.
    """

    method: Method
    url: str
    headers: HeaderMap = dataclasses.field(default_factory=HeaderMap)
    body: Any = None
    result_sink: Any = None


def with_default_content_type(headers: Optional[HeaderMap]) -> HeaderMap:
    """Return a copy of ``headers`` that is guaranteed to carry a Content-Type."""
    prepared = headers.copy() if headers is not None else HeaderMap()
    if not prepared.get("Content-Type"):
        prepared.set("Content-Type", DEFAULT_CONTENT_TYPE)
    return prepared


def _json_name(field: dataclasses.Field) -> str:
    return field.metadata.get("json", field.name)


def _encode_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {_json_name(f): getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_body(body: Any) -> Optional[bytes]:
    """Serialize a request body to UTF-8 JSON bytes.

    Dataclass instances are encoded field by field; a field may rename its
    JSON key with ``metadata={"json": "name"}``.

    Raises:
        SerializationError: If the value cannot be represented as JSON.
    """
    if body is None:
        return None
    try:
        return json.dumps(body, default=_encode_default, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"cannot encode request body: {e}") from e


def decode_into(content: bytes, sink: Any) -> Any:
    """Decode JSON ``content`` into ``sink`` and return the decoded value.

    A dict sink is updated in place, a list sink has its contents replaced,
    a callable sink is called with the value, and any other object gets each
    matching JSON key assigned as an attribute. Unknown keys are ignored and
    missing keys leave the sink untouched; a JSON null leaves it untouched
    entirely. Dataclass fields are converted to their annotated types, so
    nested dataclasses and lists of them are rebuilt.

    Raises:
        DeserializationError: If the body is not valid JSON or does not fit the sink.
    """
    text = content.decode("utf-8", errors="replace")
    try:
        value = json.loads(text)
    except ValueError as e:
        raise DeserializationError(f"cannot decode response body: {e}", body=text) from e

    if value is None and not callable(sink):
        return None

    if isinstance(sink, dict):
        if not isinstance(value, dict):
            raise DeserializationError(
                f"cannot decode JSON {type(value).__name__} into dict", body=text
            )
        sink.update(value)
    elif isinstance(sink, list):
        if not isinstance(value, list):
            raise DeserializationError(
                f"cannot decode JSON {type(value).__name__} into list", body=text
            )
        sink[:] = value
    elif dataclasses.is_dataclass(sink) and not isinstance(sink, type):
        if not isinstance(value, dict):
            raise DeserializationError(
                f"cannot decode JSON {type(value).__name__} into {type(sink).__name__}", body=text
            )
        try:
            hints = _type_hints(type(sink))
            for field in dataclasses.fields(sink):
                key = _json_name(field)
                if key in value:
                    setattr(sink, field.name, _convert(hints.get(field.name, Any), value[key]))
        except (AttributeError, TypeError, ValueError) as e:
            raise DeserializationError(f"cannot assign to result sink: {e}", body=text) from e
    elif callable(sink) and not isinstance(sink, type):
        sink(value)
    elif hasattr(sink, "__dict__") and not isinstance(sink, type):
        if not isinstance(value, dict):
            raise DeserializationError(
                f"cannot decode JSON {type(value).__name__} into {type(sink).__name__}", body=text
            )
        # Only existing public instance attributes are assigned.
        known = vars(sink)
        try:
            for key, item in value.items():
                if key in known and not key.startswith("_"):
                    setattr(sink, key, item)
        except (AttributeError, TypeError) as e:
            raise DeserializationError(f"cannot assign to result sink: {e}", body=text) from e
    else:
        raise DeserializationError(f"unsupported result sink of type {type(sink).__name__}", body=text)
    return value


def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        return {}


@functools.lru_cache(maxsize=256)
def _adapter(hint: Any) -> TypeAdapter:
    return TypeAdapter(hint)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    hints = _type_hints(cls)
    kwargs = {}
    for field in dataclasses.fields(cls):
        key = _json_name(field)
        if field.init and key in data:
            kwargs[field.name] = _convert(hints.get(field.name, Any), data[key])
    return cls(**kwargs)


def _convert(hint: Any, item: Any) -> Any:
    """Convert a decoded JSON value to ``hint``.

    Dataclasses, and lists, dicts and optionals of them, are rebuilt here so
    that ``json`` field aliases are honoured at every level. Everything else
    is validated by pydantic.

    Raises:
        TypeError, ValueError: If ``item`` does not fit ``hint``.
    """
    if hint is Any:
        return item
    if isinstance(hint, type) and dataclasses.is_dataclass(hint) and isinstance(item, dict):
        return _build_dataclass(hint, item)

    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is Union:
        if item is None and type(None) in args:
            return None
        candidates = [arg for arg in args if arg is not type(None)]
        if len(candidates) == 1:
            return _convert(candidates[0], item)
    elif origin is list and args and isinstance(item, list):
        return [_convert(args[0], element) for element in item]
    elif origin is dict and len(args) == 2 and isinstance(item, dict):
        return {key: _convert(args[1], element) for key, element in item.items()}

    try:
        adapter = _adapter(hint)
    except TypeError:
        adapter = TypeAdapter(hint)
    return adapter.validate_python(item)
