"""Patch error module."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


class PatchError(ValueError):
    """
    Base class for patch errors.

    Attributes:
    • message: description of the error
    • op: operation kind of the instruction that failed
    • path: pointer to the location at fault
    • index: position of the failed instruction in the patch

    Attributes that are not known where the error is raised are None; the patch applier
    fills in the operation kind and index of the instruction being applied.
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        op: str | None = None,
        path: Any = None,
        index: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.op = op
        self.path = path
        self.index = index

    def __repr__(self):
        return (
            f"{self.__class__.__name__}({self.message!r}, op={self.op!r}, "
            f"path={self.path!r}, index={self.index!r})"
        )

    def __str__(self):
        details = [
            f"{name}: {value}"
            for name, value in (("op", self.op), ("path", self.path), ("index", self.index))
            if value is not None
        ]
        result = [self.message or self.__class__.__name__]
        if details:
            result.append(f"({', '.join(details)})")
        return " ".join(result)

    @staticmethod
    @contextmanager
    def instruction_on_error(op: str, index: int | None = None) -> Iterator[None]:
        """Context manager to add instruction details in the event a PatchError is raised."""
        try:
            yield
        except PatchError as pe:
            if pe.op is None:
                pe.op = str(op)
            if pe.index is None:
                pe.index = index
            raise


class InvalidPathError(PatchError):
    """Malformed pointer, malformed array index or misplaced append marker."""


class PathNotFoundError(PatchError):
    """A key, index or attribute required to resolve a pointer does not exist."""


class InvalidOperationError(PatchError):
    """Well-formed but illegal request, such as removing the root or moving into a subtree."""


class InvalidPatchError(PatchError):
    """Malformed instruction or patch document."""


class ConversionError(PatchError):
    """A value could not be converted between its Python type and its document form."""


class TestFailedError(PatchError):
    """
    A test instruction found a value different from the expected value.

    Attributes:
    • path: pointer to the tested location
    • value: the expected value
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        message: str | None = None,
        *,
        path: Any,
        value: Any,
        op: str | None = "test",
        index: int | None = None,
    ):
        super().__init__(
            message or f"test failed; expected: {value!r}", op=op, path=path, index=index
        )
        self.value = value
