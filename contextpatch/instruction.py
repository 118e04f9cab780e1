"""Module that defines patch instructions."""

from contextpatch.error import InvalidPatchError
from contextpatch.pointer import Pointer
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class OperationKind(StrEnum):
    """Kind of operation that an instruction performs."""

    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
    MOVE = "move"
    COPY = "copy"
    TEST = "test"


class _Missing:
    def __repr__(self):
        return "MISSING"


MISSING = _Missing()  # distinguishes an absent value from a null value


_requires_from = {OperationKind.MOVE, OperationKind.COPY}
_requires_value = {OperationKind.ADD, OperationKind.REPLACE, OperationKind.TEST}


@dataclass(frozen=True)
class Instruction:
    """
    A single patch instruction.

    Parameters and attributes:
    • op: kind of operation to perform
    • path: location the operation targets
    • from_: location of the source value; required for move and copy
    • value: value to add, replace or test; required for add, replace and test

    The operation kind may be given as a string, and pointers as pointer strings; they are
    converted on construction. A value of None is the JSON null value; to omit the value,
    leave it as MISSING.
    """

    op: OperationKind
    path: Pointer
    from_: Pointer | None = None
    value: Any = MISSING

    def __post_init__(self):
        try:
            op = OperationKind(self.op)
        except ValueError:
            raise InvalidPatchError(f"unknown operation: {self.op!r}") from None
        object.__setattr__(self, "op", op)
        if isinstance(self.path, str):
            object.__setattr__(self, "path", Pointer.parse(self.path))
        if isinstance(self.from_, str):
            object.__setattr__(self, "from_", Pointer.parse(self.from_))
        if not isinstance(self.path, Pointer):
            raise InvalidPatchError(f"{op} requires path", op=op)
        if op in _requires_from and not isinstance(self.from_, Pointer):
            raise InvalidPatchError(f"{op} requires from", op=op, path=self.path)
        if op in _requires_value and self.value is MISSING:
            raise InvalidPatchError(f"{op} requires value", op=op, path=self.path)

