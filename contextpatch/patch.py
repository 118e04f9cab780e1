"""
Module to apply JSON Patch documents to typed values, per RFC 6902.

A patch is an ordered sequence of instructions. Each instruction is applied either by a
specialized handler registered for its operation kind, operating on the typed value directly,
or generically: the value is encoded into a document node, the operation is performed on the
node, and the node is decoded back into the value's type.

The value passed to a patch is never modified; a patch works on a deep copy of it, and returns
that copy once all instructions have been applied. If any instruction fails, the patch stops
and raises the error; no partially patched value is returned.
"""

import contextpatch.operations as operations
import logging

from collections.abc import Callable, Iterable, Mapping
from contextpatch.codec import CodecError, NodeCodec, get_codec
from contextpatch.error import ConversionError, InvalidPatchError, PatchError, TestFailedError
from contextpatch.handlers import Handler, Handlers
from contextpatch.instruction import MISSING, Instruction, OperationKind
from contextpatch.validation import ValidationError, validate
from copy import deepcopy
from typing import Any, Generic, Required, TypedDict, TypeVar


_logger = logging.getLogger(__name__)


T = TypeVar("T")


# ----- patch document -----


OperationDocument = TypedDict(
    "OperationDocument",
    {"op": Required[str], "path": Required[str], "from": str, "value": Any},
    total=False,
)


def decode_patch(document: Any) -> list[Instruction]:
    """
    Decode a JSON Patch document into a list of instructions.

    The document is an array of operation objects, each with "op" and "path" members, a "from"
    member for move and copy, and a "value" member for add, replace and test. Other members
    are ignored. Raises InvalidPatchError if the document is malformed, or InvalidPathError if
    a pointer is malformed.
    """
    if not isinstance(document, list):
        raise InvalidPatchError("patch document must be an array")
    codec = get_codec(OperationDocument)
    result = []
    for index, item in enumerate(document):
        try:
            operation = codec.decode(item)
        except CodecError as ce:
            raise InvalidPatchError(f"malformed operation: {ce}", index=index) from ce
        with PatchError.instruction_on_error(operation["op"], index):
            result.append(
                Instruction(
                    op=operation["op"],
                    path=operation["path"],
                    from_=operation.get("from"),
                    value=operation.get("value", MISSING),
                )
            )
    return result


# ----- applier -----


class JSONPatch(Generic[T]):
    """
    A JSON Patch that can be applied to typed values.

    Parameters:
    • instructions: instructions to apply, in order
    • type: type hint of values to be patched  [type of value being patched]
    • handlers: specialized handlers, as a Handlers registry or a mapping of operation kinds

    The type hint selects the codec used to apply instructions generically, and the
    annotations against which generically patched values are validated.
    """

    def __init__(
        self,
        instructions: Iterable[Instruction],
        *,
        type: Any = None,
        handlers: Handlers | Mapping[str, Handler] | None = None,
    ):
        self.instructions = tuple(instructions)
        for index, instruction in enumerate(self.instructions):
            if not isinstance(instruction, Instruction):
                raise InvalidPatchError("expecting Instruction", index=index)
        self.type = type
        self.handlers = handlers if isinstance(handlers, Handlers) else Handlers(handlers)

    @classmethod
    def from_document(cls, document: Any, **kwargs) -> "JSONPatch":
        """Return a patch decoded from a JSON Patch document; see decode_patch."""
        return cls(decode_patch(document), **kwargs)

    def apply(self, value: T) -> T:
        """
        Return the result of applying the patch to a value.

        Raises:
        • TestFailedError: a test instruction found a different value
        • PathNotFoundError: a location an instruction requires does not exist
        • InvalidPathError: a pointer or array index is malformed or misused
        • InvalidOperationError: an instruction is illegal (e.g. removing the root)
        • ConversionError: a value could not be converted to or from a document node
        """
        python_type = self.type if self.type is not None else value.__class__
        result = deepcopy(value)
        for index, instruction in enumerate(self.instructions):
            handler = self.handlers.get(instruction.op)
            if _logger.isEnabledFor(logging.DEBUG):
                _logger.debug(
                    "instruction %d: %s %s (%s)",
                    index,
                    instruction.op,
                    instruction.path,
                    "specialized" if handler is not None else "generic",
                )
            with PatchError.instruction_on_error(instruction.op, index):
                if handler is not None:
                    result = _apply_specialized(handler, instruction, result)
                else:
                    result = _apply_generic(instruction, result, python_type)
        return result

    def __len__(self) -> int:
        return len(self.instructions)

    def __repr__(self):
        return (
            f"JSONPatch({list(self.instructions)!r}, type={self.type!r}, "
            f"handlers={self.handlers!r})"
        )


def _test_failed(instruction: Instruction) -> TestFailedError:
    return TestFailedError(path=instruction.path, value=instruction.value)


def _apply_specialized(handler: Callable, instruction: Instruction, value: Any) -> Any:
    path, from_ = instruction.path, instruction.from_
    match instruction.op:
        case OperationKind.ADD:
            result = handler(value, path, deepcopy(instruction.value))
        case OperationKind.REMOVE:
            result = handler(value, path)
        case OperationKind.REPLACE:
            result = handler(value, path, deepcopy(instruction.value))
        case OperationKind.MOVE:
            result = handler(value, from_, path)
        case OperationKind.COPY:
            result = handler(value, from_, path)
        case OperationKind.TEST:
            if not handler(value, path, deepcopy(instruction.value)):
                raise _test_failed(instruction)
            return value
    return value if result is None else result


def _codec(python_type: Any) -> NodeCodec:
    try:
        return get_codec(python_type)
    except TypeError as te:
        raise ConversionError(str(te)) from te


def _apply_generic(instruction: Instruction, value: Any, python_type: Any) -> Any:
    codec = _codec(python_type)
    try:
        document = codec.encode(value)
    except CodecError as ce:
        raise ConversionError(f"cannot encode value: {ce}") from ce
    path, from_ = instruction.path, instruction.from_
    match instruction.op:
        case OperationKind.ADD:
            document = operations.add(document, path, instruction.value)
        case OperationKind.REMOVE:
            document = operations.remove(document, path)
        case OperationKind.REPLACE:
            document = operations.replace(document, path, instruction.value)
        case OperationKind.MOVE:
            document = operations.move(document, from_, path)
        case OperationKind.COPY:
            document = operations.copy(document, from_, path)
        case OperationKind.TEST:
            if not operations.test(document, path, instruction.value):
                raise _test_failed(instruction)
            return value
    try:
        result = codec.decode(document)
        validate(result, python_type)
    except (CodecError, ValidationError) as e:
        raise ConversionError(f"cannot decode patched value: {e}", path=path) from e
    return result


def json_patch(
    *,
    value: Any,
    type: Any = None,
    patch: Iterable[Instruction] | Iterable[Mapping[str, Any]],
    handlers: Handlers | Mapping[str, Handler] | None = None,
) -> Any:
    """
    Return the result of applying a JSON Patch to a specified value, per RFC 6902.

    Parameters:
    • value: value to be patched
    • type: type of value to be patched  [type of value]
    • patch: instructions, or JSON Patch document, to apply to value
    • handlers: specialized operation handlers
    """
    patch = list(patch)
    if all(isinstance(item, Instruction) for item in patch):
        return JSONPatch(patch, type=type, handlers=handlers).apply(value)
    return JSONPatch.from_document(patch, type=type, handlers=handlers).apply(value)
