"""Module to validate values against type hints."""

import dataclasses
import enum
import inspect
import types
import typing
import wrapt

from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from contextpatch.types import is_instance, is_subclass, split_annotated
from types import NoneType
from typing import Any, TypeVar


class ValidationError(ValueError):
    """Error raised when validation fails."""

    __slots__ = {"message", "path"}

    def __init__(self, message: str | None = None, path: list[str | int] | None = None):
        self.message = message
        self.path = path

    def __repr__(self):
        return f"{self.__class__.__name__}({self.message!r}, {self.path!r})"

    def __str__(self):
        result = []
        if self.message is not None:
            result.append(str(self.message))
        if self.path:
            result.append(f"({'.'.join((str(a) for a in self.path))})")
        return " ".join(result)

    @staticmethod
    @contextmanager
    def path_on_error(segment: str | int) -> Iterator[None]:
        """Context manager to prefix the error path in the event that a ValidationError is raised."""
        try:
            yield
        except ValidationError as ve:
            ve.path = [segment, *(ve.path or [])]
            raise


class Validator:
    """Base class for type annotation that performs validation."""

    def validate(self, value: Any) -> None:
        raise NotImplementedError


class MinLen(Validator):
    """Type annotation that validates a value has a minimum length."""

    __slots__ = {"value"}

    def __init__(self, value: int):
        self.value = value

    def validate(self, value: Any) -> None:
        if len(value) < self.value:
            raise ValidationError(f"minimum length: {self.value}")

    def __repr__(self):
        return f"MinLen({self.value})"


class MaxLen(Validator):
    """Type annotation that validates a value has a maximum length."""

    __slots__ = {"value"}

    def __init__(self, value: int):
        self.value = value

    def validate(self, value: Any) -> None:
        if len(value) > self.value:
            raise ValidationError(f"maximum length: {self.value}")

    def __repr__(self):
        return f"MaxLen({self.value})"


class MinValue(Validator):
    """Type annotation that validates a value has a minimum value."""

    __slots__ = {"value"}

    def __init__(self, value: Any):
        self.value = value

    def validate(self, value: Any) -> None:
        if value < self.value:
            raise ValidationError(f"minimum value: {self.value}")

    def __repr__(self):
        return f"MinValue({self.value})"


class MaxValue(Validator):
    """Type annotation that validates a value has a maximum value."""

    __slots__ = {"value"}

    def __init__(self, value: Any):
        self.value = value

    def validate(self, value: Any) -> None:
        if value > self.value:
            raise ValidationError(f"maximum value: {self.value}")

    def __repr__(self):
        return f"MaxValue({self.value})"


def _validate_union(value, args):
    if value is None and NoneType in args:
        return
    for arg in args:
        try:
            return validate(value, arg)
        except ValidationError:
            continue
    raise ValidationError(f"expecting: union of {args}; received: {type(value)} ({value})")


def _validate_literal(value, args):
    for arg in args:
        if arg == value and type(arg) is type(value):
            return
    raise ValidationError(f"expecting one of: {args}; received: {value}")


def _validate_typeddict(value, python_type):
    for item_key, item_type in typing.get_type_hints(python_type, include_extras=True).items():
        if item_key in value:
            with ValidationError.path_on_error(item_key):
                validate(value[item_key], item_type)
        elif item_key in python_type.__required_keys__:
            raise ValidationError("required", path=[item_key])


def _validate_mapping(value, args):
    key_type, value_type = args or (Any, Any)
    for key, item in value.items():
        validate(key, key_type)
        with ValidationError.path_on_error(key):
            validate(item, value_type)


def _validate_tuple(value, args):
    if not args:
        return
    if len(args) == 2 and args[1] is Ellipsis:
        for n, item in enumerate(value):
            with ValidationError.path_on_error(n):
                validate(item, args[0])
    elif len(value) != len(args):
        raise ValidationError(
            f"expecting tuple[{', '.join(str(arg) for arg in args)}]; received: {value}"
        )
    else:
        for n, (item, arg) in enumerate(zip(value, args)):
            with ValidationError.path_on_error(n):
                validate(item, arg)


def _validate_iterable(value, args):
    item_type = args[0] if args else Any
    for n, item in enumerate(value):
        with ValidationError.path_on_error(n):
            validate(item, item_type)


def _validate_dataclass(value, python_type):
    for attr_name, attr_type in typing.get_type_hints(python_type, include_extras=True).items():
        with ValidationError.path_on_error(attr_name):
            validate(getattr(value, attr_name), attr_type)


def validate(value: Any, type_hint: Any) -> NoneType:
    """Validate a value against a type hint, including its validator annotations."""

    python_type, annotations = split_annotated(type_hint)
    origin = typing.get_origin(python_type)
    args = typing.get_args(python_type)

    for annotation in annotations:
        if isinstance(annotation, Validator):
            annotation.validate(value)

    if python_type is Any or isinstance(python_type, TypeVar):
        return

    match origin:
        case types.UnionType | typing.Union:
            return _validate_union(value, args)
        case typing.Literal:
            return _validate_literal(value, args)

    if python_type is None:
        python_type = NoneType

    if typing.is_typeddict(python_type):
        if not isinstance(value, dict):
            raise ValidationError(f"expecting dict; received {type(value)}")
        return _validate_typeddict(value, python_type)

    # basic type validation
    if origin and not is_instance(value, origin):
        raise ValidationError(f"expecting {origin.__name__}; received {type(value)}")
    elif not origin and not is_instance(value, python_type):
        raise ValidationError(f"expecting {python_type}; received {type(value)}")
    elif python_type is int and is_instance(value, bool):  # bool is subclass of int
        raise ValidationError("expecting int; received bool")

    if is_subclass(python_type, str | bytes | bytearray | enum.Enum):
        return

    # structured type validation
    container = origin or python_type
    if is_subclass(container, Mapping):
        return _validate_mapping(value, args)
    elif is_subclass(container, tuple):
        return _validate_tuple(value, args)
    elif is_subclass(container, Iterable) and not is_subclass(container, Callable):
        return _validate_iterable(value, args)
    elif dataclasses.is_dataclass(python_type):
        return _validate_dataclass(value, python_type)


def validate_arguments(callable: Callable):
    """Decorate a function to validate its arguments using type annotations."""

    sig = inspect.signature(callable)

    positional_params = [
        p.name
        for p in sig.parameters.values()
        if p.kind in {p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD}
    ]

    @wrapt.decorator
    def decorator(wrapped, instance, args, kwargs):
        hints = typing.get_type_hints(callable, include_extras=True)
        params = {
            **{p: v for p, v in zip(positional_params, (instance, *args) if instance else args)},
            **kwargs,
        }
        for param in (p for p in sig.parameters.values() if p.name in params):
            if hint := hints.get(param.name):
                with ValidationError.path_on_error(param.name):
                    validate(params[param.name], hint)
        return wrapped(*args, **kwargs)

    return decorator(callable)
