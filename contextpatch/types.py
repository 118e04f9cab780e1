"""Module to inspect types and type hints."""

import types
import typing

from types import NoneType
from typing import Any


_qualifiers = {typing.Required, typing.NotRequired}


def _unqualify(type_hint: Any) -> Any:
    while typing.get_origin(type_hint) in _qualifiers:
        type_hint = typing.get_args(type_hint)[0]
    return type_hint


def split_annotated(type_hint: Any) -> tuple[Any, tuple[Any, ...]]:
    """
    Return a tuple separating the python type and annotations.

    TypedDict item qualifiers (Required, NotRequired) are removed, whether they wrap or are
    wrapped by Annotated.
    """
    type_hint = _unqualify(type_hint)
    if not typing.get_origin(type_hint) is typing.Annotated:
        return type_hint, ()
    args = typing.get_args(type_hint)
    return _unqualify(args[0]), args[1:]


def strip_annotations(type_hint: Any) -> Any:
    """Return the python type of a type hint, with any Annotated wrapping removed."""
    return split_annotated(type_hint)[0]


def is_optional(type_hint: Any) -> bool:
    """
    Return if the specified type is optional.

    A type is optional if its type hint matches any of the following:
    • None
    • Optional[...]
    • Union[..., None]
    • ... | None
    """
    python_type = strip_annotations(type_hint)
    if not typing.get_origin(python_type) in {types.UnionType, typing.Union}:
        return python_type is NoneType
    return any(is_optional(arg) for arg in typing.get_args(python_type))


def is_subclass(cls: Any, class_or_tuple: type | tuple[type, ...]) -> bool:
    """A more forgiving issubclass."""
    try:
        return issubclass(cls, class_or_tuple)
    except TypeError:
        return False


def is_instance(obj: Any, class_or_tuple: type | tuple[type, ...]) -> bool:
    """A more forgiving isinstance."""
    try:
        return isinstance(obj, class_or_tuple)
    except TypeError:
        return False


def literal_values(literal_type_hint: Any) -> set[Any]:
    """Return a set of all values in a Literal type."""
    return set(typing.get_args(literal_type_hint))
