"""
Module to define specialized operation handlers.

A specialized handler performs one kind of patch operation directly on a typed value,
bypassing its conversion to a document node. A patch consults its handlers for each
instruction; instructions whose operation kind has no handler are applied generically.

Handlers can be supplied as plain callables:

    Handlers(add=add_tag, remove=remove_tag)

or as methods of an object, each decorated with @handler:

    class TagHandlers:

        @handler
        def add(self, context, path, value):
            ...

    Handlers.of(TagHandlers())

A handler must raise the same errors as its generic counterpart (e.g. PathNotFoundError if
the location it is given does not exist). A mutating handler returns the patched value; if it
returns None, the value it was passed is taken to be patched in place.
"""

import functools
import inspect
import logging
import types
import wrapt

from collections.abc import Callable, Iterator, Mapping
from contextpatch.codec import CodecError, get_codec
from contextpatch.error import ConversionError
from contextpatch.instruction import OperationKind
from contextpatch.pointer import Pointer
from contextpatch.validation import ValidationError, validate, validate_arguments
from typing import Any, Protocol, TypeVar


_logger = logging.getLogger(__name__)


T = TypeVar("T")


class AddHandler(Protocol[T]):
    """Add a value at the specified location."""

    def __call__(self, context: T, path: Pointer, value: Any) -> T | None:
        ...


class RemoveHandler(Protocol[T]):
    """Remove the value at the specified location."""

    def __call__(self, context: T, path: Pointer) -> T | None:
        ...


class ReplaceHandler(Protocol[T]):
    """Replace the existing value at the specified location."""

    def __call__(self, context: T, path: Pointer, value: Any) -> T | None:
        ...


class MoveHandler(Protocol[T]):
    """Move the value at one location to another."""

    def __call__(self, context: T, from_: Pointer, path: Pointer) -> T | None:
        ...


class CopyHandler(Protocol[T]):
    """Copy the value at one location to another."""

    def __call__(self, context: T, from_: Pointer, path: Pointer) -> T | None:
        ...


class TestHandler(Protocol[T]):
    """Return if the value at the specified location equals the specified value."""

    def __call__(self, context: T, path: Pointer, value: Any) -> bool:
        ...


Handler = AddHandler | RemoveHandler | ReplaceHandler | MoveHandler | CopyHandler | TestHandler


# number of parameters each kind of handler accepts
_arity = {
    OperationKind.ADD: 3,
    OperationKind.REMOVE: 2,
    OperationKind.REPLACE: 3,
    OperationKind.MOVE: 3,
    OperationKind.COPY: 3,
    OperationKind.TEST: 3,
}


def _operation_kind(op: str) -> OperationKind:
    try:
        return OperationKind(op)
    except ValueError:
        raise TypeError(
            f"handler operation must be one of: {', '.join(OperationKind)}; received: {op!r}"
        ) from None


@validate_arguments
def handler(wrapped: Callable | None = None, *, op: str | None = None) -> Callable:
    """
    Decorate a function or method as a specialized operation handler.

    Parameters:
    • op: kind of operation the handler performs  [inferred from wrapped function name]

    The handler's parameters are checked against the operation kind: context, path and value
    for add, replace and test; context and path for remove; context, from and path for move
    and copy. When a handler is called, its invocation is logged at DEBUG level.
    """

    if wrapped is None:
        return functools.partial(handler, op=op)

    kind = _operation_kind(op or wrapped.__name__)

    params = list(inspect.signature(wrapped).parameters.values())
    if params and params[0].name == "self":
        params = params[1:]
    for param in params:
        if param.kind in {param.VAR_POSITIONAL, param.VAR_KEYWORD}:
            raise TypeError("handler with *args or **kwargs is not supported")
    if len(params) != _arity[kind]:
        raise TypeError(f"{kind} handler must accept {_arity[kind]} parameters")

    @wrapt.decorator
    def wrapper(wrapped, instance, args, kwargs):
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                "handler: %s %s(%s)",
                kind,
                wrapped.__qualname__,
                ", ".join(str(arg) for arg in args[1:]),
            )
        return wrapped(*args, **kwargs)

    wrapped._contextpatch_handler = types.SimpleNamespace(op=kind)
    return wrapper(wrapped)


def is_handler(obj: Any) -> bool:
    """Return if object is a function or method decorated with @handler."""
    return hasattr(obj, "_contextpatch_handler")


class Handlers(Mapping[OperationKind, Handler]):
    """
    Registry of specialized operation handlers, keyed by operation kind.

    Parameters:
    • handlers: mapping of operation kinds to handlers
    • kwargs: handlers, keyed by operation kind name

    An operation kind absent from the registry is applied generically. The registry cannot be
    modified once constructed.
    """

    def __init__(self, handlers: Mapping[str, Handler] | None = None, /, **kwargs: Handler):
        self._handlers = {}
        for op, fn in {**(handlers or {}), **kwargs}.items():
            kind = _operation_kind(op)
            if not callable(fn):
                raise TypeError(f"{kind} handler must be callable")
            self._handlers[kind] = fn

    @classmethod
    def of(cls, obj: Any) -> "Handlers":
        """Return a registry of the methods of an object that are decorated with @handler."""
        handlers = {}
        for name in dir(obj):
            if name.startswith("_"):
                continue
            attr = getattr(obj, name)
            if not is_handler(attr):
                continue
            kind = attr._contextpatch_handler.op
            if kind in handlers:
                raise TypeError(f"multiple {kind} handlers: {name}")
            handlers[kind] = attr
        return cls(handlers)

    def __getitem__(self, op: str) -> Handler:
        return self._handlers[op]

    def __iter__(self) -> Iterator[OperationKind]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self):
        return f"Handlers({', '.join(f'{k}={v!r}' for k, v in self._handlers.items())})"


def convert(value: Any, type: Any) -> Any:
    """
    Return an instruction value converted into the specified type.

    Handlers receive instruction values as document nodes; this function decodes them into
    the types of the fields they patch, validating any annotated constraints. Raises
    ConversionError if the value cannot be converted.
    """
    try:
        result = get_codec(type).decode(value)
        validate(result, type)
    except (CodecError, ValidationError) as e:
        raise ConversionError(f"cannot convert value to {type}: {e}") from e
    return result
