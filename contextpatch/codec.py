"""
Module to convert Python values to and from document nodes.

A document node is the JSON representation of a value, as decoded into Python: None, bool,
int, float, str, list or dict. A codec for a Python type is obtained with NodeCodec.get; it
encodes values of that type into nodes and decodes nodes back into values of that type.
"""

import base64
import dataclasses
import enum
import iso8601
import keyword
import typing

from collections.abc import Iterable, Iterator, Mapping, Sequence, Set
from contextlib import contextmanager, suppress
from contextpatch.types import is_optional, is_subclass, literal_values, strip_annotations
from datetime import date, datetime, timezone
from decimal import Decimal
from types import NoneType, UnionType
from typing import Any, Generic, Literal, TypeVar, Union, get_args, get_origin
from uuid import UUID


Node = Any


# ----- utilities -----


@contextmanager
def _wrap(exception):
    try:
        yield
    except Exception as e:
        if isinstance(e, exception):
            raise
        raise exception from e


# ----- errors -----


class CodecError(ValueError):
    """
    Error raised in the event that a value cannot be encoded or decoded.

    Attributes:
    • message: description of the error
    • path: members traversed to reach the value at fault
    """

    __slots__ = {"message", "path"}

    def __init__(self, message: str | None = None, path: list[str | int] | None = None):
        self.message = message
        self.path = path

    def __repr__(self):
        return f"{self.__class__.__name__}({self.message!r}, {self.path!r})"

    def __str__(self):
        result = [self.message or self.__class__.__name__]
        if self.path:
            result.append(f"({'/'.join(str(p) for p in self.path)})")
        return " ".join(result)

    @staticmethod
    @contextmanager
    def path_on_error(segment: str | int) -> Iterator[None]:
        """Context manager to prefix the error path in the event that a CodecError is raised."""
        try:
            yield
        except CodecError as ce:
            ce.path = [segment, *(ce.path or [])]
            raise


class EncodeError(CodecError):
    """Error raised when a value cannot be encoded into a document node."""


class DecodeError(CodecError):
    """Error raised when a document node cannot be decoded into a value."""


# ----- base -----


PT = TypeVar("PT")  # Python type hint


class NodeCodec(Generic[PT]):
    """
    Base class for codecs that encode Python values to and from document nodes.

    Subclasses are consulted in the order they are declared; the first that handles a type
    provides its codec.
    """

    _cache = {}

    def __init__(self, python_type: Any):
        self.python_type = python_type

    @staticmethod
    def handles(python_type: Any) -> bool:
        """Return True if the codec handles the specified Python type."""
        raise NotImplementedError

    @classmethod
    def get(cls, python_type: Any) -> "NodeCodec[PT]":
        """Return a codec that handles the specified Python type."""
        with suppress(KeyError, TypeError):  # unhashable type hints are not cached
            return NodeCodec._cache[python_type]
        for codec_class in NodeCodec.__subclasses__():
            if codec_class.handles(python_type):
                codec = codec_class(python_type)
                with suppress(TypeError):
                    NodeCodec._cache[python_type] = codec
                return codec
        raise TypeError(f"no codec for {python_type}")

    def encode(self, value: PT) -> Node:
        """Encode value from Python type to document node."""
        raise NotImplementedError

    def decode(self, value: Node) -> PT:
        """Decode value from document node to Python type."""
        raise NotImplementedError


def get_codec(python_type: Any) -> NodeCodec:
    """Return a codec that handles the specified Python type."""
    return NodeCodec.get(python_type)


# ----- Enum -----


class EnumCodec(NodeCodec[enum.Enum]):
    """Codec for enumerations. A member is represented by its value."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), enum.Enum)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        self.raw_type = strip_annotations(python_type)

    def encode(self, value: enum.Enum) -> Node:
        if not isinstance(value, self.raw_type):
            raise EncodeError(f"expecting {self.raw_type.__name__}")
        return value.value

    def decode(self, value: Node) -> enum.Enum:
        with _wrap(DecodeError):
            return self.raw_type(value)


# ----- str -----


class StrCodec(NodeCodec[str]):
    """Codec for Unicode character strings."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), str)

    def encode(self, value: str) -> Node:
        if not isinstance(value, str):
            raise EncodeError("expecting str")
        return value

    def decode(self, value: Node) -> str:
        if not isinstance(value, str):
            raise DecodeError("expecting str")
        return value


# ----- bytes/bytearray -----


class BytesCodec(NodeCodec[bytes | bytearray]):
    """
    Codec for byte sequences. A byte sequence is represented as a base64-encoded string.
    Example: "SGVsbG8gV29ybGQ=".
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), bytes | bytearray)

    def encode(self, value: bytes | bytearray) -> Node:
        if not isinstance(value, bytes | bytearray):
            raise EncodeError("expecting bytes")
        return base64.b64encode(value).decode()

    def decode(self, value: Node) -> bytes:
        if not isinstance(value, str):
            raise DecodeError("expecting base64-encoded string")
        with _wrap(DecodeError):
            return base64.b64decode(value, validate=True)


# ----- bool -----


class BoolCodec(NodeCodec[bool]):
    """Codec for boolean values."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), bool)

    def encode(self, value: bool) -> Node:
        if not isinstance(value, bool):
            raise EncodeError("expecting bool")
        return value

    def decode(self, value: Node) -> bool:
        if not isinstance(value, bool):
            raise DecodeError("expecting bool")
        return value


# ----- int -----


class IntCodec(NodeCodec[int]):
    """Codec for integers."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, int) and not is_subclass(python_type, bool)

    def encode(self, value: int) -> Node:
        if not isinstance(value, int) or isinstance(value, bool):
            raise EncodeError("expecting int")
        return value

    def decode(self, value: Node) -> int:
        if not isinstance(value, int | float) or isinstance(value, bool):
            raise DecodeError("expecting int")
        result = int(value)
        if result != value:  # 1.0 == 1
            raise DecodeError("expecting int")
        return result


# ----- float -----


class FloatCodec(NodeCodec[float]):
    """Codec for floating point numbers."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), float)

    def encode(self, value: float) -> Node:
        if not isinstance(value, int | float) or isinstance(value, bool):
            raise EncodeError("expecting float")
        return float(value)

    def decode(self, value: Node) -> float:
        if not isinstance(value, int | float) or isinstance(value, bool):
            raise DecodeError("expecting float")
        return float(value)


# ----- NoneType -----


class NoneTypeCodec(NodeCodec[NoneType]):
    """Codec for None value."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return python_type is NoneType or python_type is None

    def encode(self, value: NoneType) -> Node:
        if value is not None:
            raise EncodeError("expecting None")
        return None

    def decode(self, value: Node) -> NoneType:
        if value is not None:
            raise DecodeError("expecting null")
        return None


# ----- Decimal -----


class DecimalCodec(NodeCodec[Decimal]):
    """
    Codec for Decimal numbers. Decimal numbers are represented as strings, due to the
    imprecision of floating point numbers.
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), Decimal)

    def encode(self, value: Decimal) -> Node:
        if not isinstance(value, Decimal):
            raise EncodeError("expecting Decimal")
        return str(value)

    def decode(self, value: Node) -> Decimal:
        if not isinstance(value, str):
            raise DecodeError("expecting decimal string")
        with _wrap(DecodeError):
            return Decimal(value)


# ----- date -----


class DateCodec(NodeCodec[date]):
    """
    Codec for dates. A date is represented as an RFC 3339 formatted string.
    Example: "2018-06-16".
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, date) and not is_subclass(python_type, datetime)

    def encode(self, value: date) -> Node:
        if not isinstance(value, date) or isinstance(value, datetime):
            raise EncodeError("expecting date")
        return value.isoformat()

    def decode(self, value: Node) -> date:
        if not isinstance(value, str):
            raise DecodeError("expecting date string")
        with _wrap(DecodeError):
            return date.fromisoformat(value)


# ----- datetime -----


def _to_utc(value):
    if value.tzinfo is None:  # naive values remain naive
        return value
    return value.astimezone(timezone.utc)


class DatetimeCodec(NodeCodec[datetime]):
    """
    Codec for datetime.

    It decodes a datetime represented in an ISO 8601 formatted string. It encodes a datetime
    to an RFC 3339 (subset of ISO 8601) formatted string. Aware datetimes encode and decode
    in UTC; naive datetimes encode without an offset, and a string without an offset decodes
    to a naive datetime.

    Examples: "2020-04-07T12:34:56.789012Z", "2020-04-07T12:34:56".
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), datetime)

    def encode(self, value: datetime) -> Node:
        if not isinstance(value, datetime):
            raise EncodeError("expecting datetime")
        if value.tzinfo is None:
            return value.isoformat()
        result = _to_utc(value).isoformat()
        if result.endswith("+00:00"):
            result = result[0:-6]
        return f"{result}Z"

    def decode(self, value: Node) -> datetime:
        if not isinstance(value, str):
            raise DecodeError("expecting datetime string")
        with _wrap(DecodeError):
            return _to_utc(iso8601.parse_date(value, default_timezone=None))


# ----- UUID -----


class UUIDCodec(NodeCodec[UUID]):
    """Codec for UUID. A UUID is represented in its canonical hyphenated string form."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return is_subclass(strip_annotations(python_type), UUID)

    def encode(self, value: UUID) -> Node:
        if not isinstance(value, UUID):
            raise EncodeError("expecting UUID")
        return str(value)

    def decode(self, value: Node) -> UUID:
        if not isinstance(value, str):
            raise DecodeError("expecting UUID string")
        with _wrap(DecodeError):
            return UUID(value)


# ----- TypedDict -----


class TypedDictCodec(NodeCodec[PT]):
    """Codec for TypedDict. Absent keys remain absent."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return typing.is_typeddict(strip_annotations(python_type))

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        raw_type = strip_annotations(python_type)
        self.hints = typing.get_type_hints(raw_type, include_extras=True)
        self.required = raw_type.__required_keys__

    def _process(self, value: Mapping[str, Any], method: str, error: type) -> dict[str, Any]:
        if not isinstance(value, Mapping):
            raise error("expecting object")
        result = {}
        for key, hint in self.hints.items():
            if key not in value:
                if key in self.required:
                    raise error("required", [key])
                continue
            with CodecError.path_on_error(key):
                result[key] = getattr(NodeCodec.get(hint), method)(value[key])
        return result

    def encode(self, value: PT) -> Node:
        return self._process(value, "encode", EncodeError)

    def decode(self, value: Node) -> PT:
        return self._process(value, "decode", DecodeError)


# ----- tuple -----


class TupleCodec(NodeCodec[PT]):
    """
    Codec for tuples. A tuple is represented as an array. Both fixed-length (tuple[int, str])
    and variable-length (tuple[int, ...]) tuples are supported.
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return is_subclass(python_type, tuple) or is_subclass(get_origin(python_type), tuple)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        args = get_args(strip_annotations(python_type)) or (Any, ...)
        if len(args) != 2 and Ellipsis in args or args[0] is Ellipsis:
            raise TypeError(f"unexpected ellipsis in {python_type}")
        self.varg = args[0] if len(args) == 2 and args[1] is Ellipsis else None
        self.args = () if self.varg else args

    def _codecs(self, length: int) -> list[NodeCodec]:
        if self.varg:
            return [NodeCodec.get(self.varg)] * length
        return [NodeCodec.get(arg) for arg in self.args]

    def encode(self, value: PT) -> Node:
        if not isinstance(value, tuple) or (self.args and len(value) != len(self.args)):
            raise EncodeError(f"expecting {self.python_type}")
        result = []
        for n, (codec, item) in enumerate(zip(self._codecs(len(value)), value)):
            with CodecError.path_on_error(n):
                result.append(codec.encode(item))
        return result

    def decode(self, value: Node) -> PT:
        if not isinstance(value, list) or (self.args and len(value) != len(self.args)):
            raise DecodeError(f"expecting array of {len(self.args) or 'any'} items")
        result = []
        for n, (codec, item) in enumerate(zip(self._codecs(len(value)), value)):
            with CodecError.path_on_error(n):
                result.append(codec.decode(item))
        return tuple(result)


# ----- Mapping -----


class MappingCodec(NodeCodec[PT]):
    """Codec for mappings with string keys. A mapping is represented as an object."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        return is_subclass(origin, Mapping) and not getattr(origin, "__annotations__", None)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        args = get_args(strip_annotations(python_type)) or (str, Any)
        if len(args) != 2:
            raise TypeError("expecting Mapping[KT, VT]")
        if strip_annotations(args[0]) not in {str, Any}:
            raise TypeError("codec only supports Mapping with str keys")
        self.value_codec = NodeCodec.get(args[1])

    def encode(self, value: PT) -> Node:
        if not isinstance(value, Mapping):
            raise EncodeError("expecting Mapping")
        result = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise EncodeError("expecting str key")
            with CodecError.path_on_error(k):
                result[k] = self.value_codec.encode(v)
        return result

    def decode(self, value: Node) -> PT:
        if not isinstance(value, Mapping):
            raise DecodeError("expecting object")
        result = {}
        for k, v in value.items():
            with CodecError.path_on_error(k):
                result[k] = self.value_codec.decode(v)
        return result


# ----- Iterable -----


def _node_order(node: Node) -> tuple[str, str]:
    return type(node).__name__, repr(node)


class IterableCodec(NodeCodec[PT]):
    """Codec for iterables such as lists and sets. An iterable is represented as an array."""

    _AVOID = str | bytes | bytearray | Mapping | tuple

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        return is_subclass(origin, Iterable) and not is_subclass(origin, IterableCodec._AVOID)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        python_type = strip_annotations(python_type)
        origin = get_origin(python_type) or python_type
        args = get_args(python_type) or (Any,)
        if len(args) != 1:
            raise TypeError("expecting Iterable[T]")
        self.decode_type = list if origin in {Iterable, Sequence} else origin
        self.codec = NodeCodec.get(args[0])
        self.is_set = is_subclass(origin, Set)
        if self.decode_type is Set:
            self.decode_type = set

    def encode(self, value: PT) -> Node:
        if not isinstance(value, Iterable) or isinstance(value, IterableCodec._AVOID):
            raise EncodeError("expecting Iterable")
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self.codec.encode(item))
        if self.is_set:
            try:
                result.sort()
            except TypeError:  # unorderable items, such as int and str
                result.sort(key=_node_order)
        return result

    def decode(self, value: Node) -> PT:
        if not isinstance(value, list):
            raise DecodeError("expecting array")
        result = []
        for n, item in enumerate(value):
            with CodecError.path_on_error(n):
                result.append(self.codec.decode(item))
        with _wrap(DecodeError):
            return self.decode_type(result)


# ----- dataclass -----


class DataclassCodec(NodeCodec[PT]):
    """
    Codec for dataclasses. A dataclass instance is represented as an object, with a member
    for each field; a field whose value is None is represented as null. Fields named after a
    Python keyword with a trailing underscore (e.g. "from_") are represented without it (e.g.
    "from"). An optional field absent from an object without a default decodes as None.
    """

    # keywords have _ suffix in dataclass fields (e.g. "in_", "for_", ...)
    _dc_kw = {k + "_": k for k in keyword.kwlist}

    @staticmethod
    def handles(python_type: Any) -> bool:
        python_type = strip_annotations(python_type)
        return isinstance(python_type, type) and dataclasses.is_dataclass(python_type)

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        self.raw_type = strip_annotations(python_type)
        self.hints = typing.get_type_hints(self.raw_type, include_extras=True)

    def _codec(self, field: dataclasses.Field) -> NodeCodec:
        return NodeCodec.get(self.hints[field.name])

    def encode(self, value: PT) -> Node:
        if not isinstance(value, self.raw_type):
            raise EncodeError(f"expecting {self.raw_type.__name__}")
        result = {}
        for field in dataclasses.fields(self.raw_type):
            v = getattr(value, field.name, None)
            key = DataclassCodec._dc_kw.get(field.name, field.name)
            if v is None:
                result[key] = None
                continue
            with CodecError.path_on_error(key):
                result[key] = self._codec(field).encode(v)
        return result

    def decode(self, value: Node) -> PT:
        if not isinstance(value, Mapping):
            raise DecodeError("expecting object")
        kwargs = {}
        for field in dataclasses.fields(self.raw_type):
            if not field.init:
                continue
            key = DataclassCodec._dc_kw.get(field.name, field.name)
            if key in value and value[key] is None:
                kwargs[field.name] = None
            elif key in value:
                with CodecError.path_on_error(key):
                    kwargs[field.name] = self._codec(field).decode(value[key])
            elif (
                is_optional(self.hints[field.name])
                and field.default is dataclasses.MISSING
                and field.default_factory is dataclasses.MISSING
            ):
                kwargs[field.name] = None
        with _wrap(DecodeError):
            return self.raw_type(**kwargs)


# ----- UnionType/Union -----


class UnionCodec(NodeCodec[PT]):
    """Codec for unions. Members are attempted in declaration order."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return get_origin(strip_annotations(python_type)) in {UnionType, Union}

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        args = get_args(strip_annotations(python_type))
        self.codecs = tuple(NodeCodec.get(arg) for arg in args)

    def encode(self, value: PT) -> Node:
        for codec in self.codecs:
            with suppress(EncodeError):
                return codec.encode(value)
        raise EncodeError(f"expecting {self.python_type}")

    def decode(self, value: Node) -> PT:
        for codec in self.codecs:
            with suppress(DecodeError):
                return codec.decode(value)
        raise DecodeError(f"expecting {self.python_type}")


# ----- Literal -----


class LiteralCodec(NodeCodec[PT]):
    """Codec for literal values."""

    @staticmethod
    def handles(python_type: Any) -> bool:
        return get_origin(strip_annotations(python_type)) is Literal

    def __init__(self, python_type: Any):
        super().__init__(python_type)
        self.values = literal_values(strip_annotations(python_type))

    def _match(self, value: Any) -> bool:
        return any(v == value and type(v) is type(value) for v in self.values)

    def encode(self, value: PT) -> Node:
        if not self._match(value):
            raise EncodeError(f"expecting one of: {sorted(map(repr, self.values))}")
        return NodeCodec.get(type(value)).encode(value)

    def decode(self, value: Node) -> PT:
        if not self._match(value):
            raise DecodeError(f"expecting one of: {sorted(map(repr, self.values))}")
        return value


# ----- Any -----


class AnyCodec(NodeCodec[Any]):
    """
    Codec for Any. Values are encoded according to their runtime type; nodes are decoded
    as-is.
    """

    @staticmethod
    def handles(python_type: Any) -> bool:
        return strip_annotations(python_type) is Any

    def encode(self, value: Any) -> Node:
        with _wrap(EncodeError):
            return NodeCodec.get(type(value)).encode(value)

    def decode(self, value: Node) -> Any:
        return value
