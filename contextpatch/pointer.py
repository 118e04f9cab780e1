"""
Module to parse and resolve JSON Pointers, per RFC 6901.

A pointer is an ordered sequence of reference tokens. Tokens are unescaped once, when the
pointer is parsed; all consumers of a pointer work with decoded tokens. The empty pointer
refers to the whole document. A final token of "-" is the append marker: it refers to the
(nonexistent) element after the last element of an array.
"""

import keyword
import re

from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextpatch.error import InvalidOperationError, InvalidPathError, PathNotFoundError
from typing import Any


APPEND = "-"

_index_re = re.compile(r"0|[1-9][0-9]*")
_bad_escape_re = re.compile(r"~(?![01])")

_scalars = (str, bytes, bytearray, int, float, bool, type(None))


def escape(token: str) -> str:
    """Encode a reference token for use in a pointer string."""
    return token.replace("~", "~0").replace("/", "~1")


def unescape(token: str) -> str:
    """Decode a reference token from a pointer string."""
    if _bad_escape_re.search(token):
        raise InvalidPathError(f"invalid escape sequence in token: {token!r}")
    return token.replace("~1", "/").replace("~0", "~")


def index(token: str, path: Any = None) -> int:
    """
    Return the array index that a reference token denotes.

    Raises InvalidPathError if the token is the append marker, or is not a non-negative
    integer without leading zeros.
    """
    if token == APPEND:
        raise InvalidPathError("append marker cannot refer to an existing element", path=path)
    if not _index_re.fullmatch(token):
        raise InvalidPathError(f"invalid array index: {token!r}", path=path)
    return int(token)


def is_array(node: Any) -> bool:
    """Return if a node or object is traversed by array index."""
    return isinstance(node, Sequence) and not isinstance(node, str | bytes | bytearray)


def child(target: Any, token: str, path: Any = None) -> Any:
    """
    Return the member of a target that a single reference token refers to.

    Mappings are traversed by key, sequences by index and other objects by attribute.
    Attribute names that are Python keywords are looked up with a trailing underscore, as
    dataclass fields are declared (e.g. "from" -> "from_").
    """
    if isinstance(target, Mapping):
        try:
            return target[token]
        except KeyError:
            raise PathNotFoundError(f"no such key: {token!r}", path=path) from None
    if is_array(target):
        i = index(token, path)
        if i >= len(target):
            raise PathNotFoundError(f"array index out of range: {i}", path=path)
        return target[i]
    if isinstance(target, _scalars) or token.startswith("_"):
        raise PathNotFoundError(f"cannot resolve {token!r} in {type(target).__name__}", path=path)
    name = f"{token}_" if keyword.iskeyword(token) else token
    try:
        return getattr(target, name)
    except AttributeError:
        raise PathNotFoundError(f"no such attribute: {token!r}", path=path) from None


class Pointer:
    """
    A JSON Pointer.

    Parameters:
    • tokens: decoded reference tokens  [root]

    Use Pointer.parse to construct a pointer from its string representation. Pointers are
    immutable and hashable; two pointers are equal if their tokens are equal.
    """

    __slots__ = {"_tokens"}

    def __init__(self, tokens: Iterable[str] = ()):
        tokens = tuple(tokens)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError(f"pointer token must be str; received: {type(token)}")
        self._tokens = tokens

    @classmethod
    def parse(cls, value: str) -> "Pointer":
        """Parse a pointer from its string representation."""
        if not isinstance(value, str):
            raise InvalidPathError(f"pointer must be a string; received: {type(value)}")
        if value == "":
            return cls()
        if not value.startswith("/"):
            raise InvalidPathError(f"pointer must start with '/': {value!r}", path=value)
        try:
            return cls(unescape(token) for token in value.split("/")[1:])
        except InvalidPathError as ipe:
            ipe.path = value
            raise

    @property
    def tokens(self) -> tuple[str, ...]:
        """Decoded reference tokens."""
        return self._tokens

    @property
    def is_root(self) -> bool:
        """True if the pointer refers to the whole document."""
        return not self._tokens

    @property
    def parent(self) -> "Pointer":
        """Pointer to the container of the referenced location."""
        if not self._tokens:
            raise InvalidOperationError("root has no parent", path=self)
        return Pointer(self._tokens[:-1])

    @property
    def name(self) -> str:
        """The final reference token."""
        if not self._tokens:
            raise InvalidOperationError("root has no name", path=self)
        return self._tokens[-1]

    @property
    def is_append(self) -> bool:
        """True if the final token is the append marker."""
        return bool(self._tokens) and self._tokens[-1] == APPEND

    def is_prefix_of(self, other: "Pointer") -> bool:
        """Return if this pointer refers to a proper ancestor of the other's location."""
        n = len(self._tokens)
        return n < len(other._tokens) and other._tokens[:n] == self._tokens

    def resolve(self, target: Any) -> Any:
        """
        Return the value that the pointer refers to within a document node or an object.

        Raises PathNotFoundError if a referenced member does not exist, or InvalidPathError if
        a token cannot be used as an array index.
        """
        for token in self._tokens:
            target = child(target, token, self)
        return target

    def __truediv__(self, token: str | int) -> "Pointer":
        return Pointer((*self._tokens, str(token)))

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def __getitem__(self, key):
        if isinstance(key, slice):
            return Pointer(self._tokens[key])
        return self._tokens[key]

    def __eq__(self, other):
        if not isinstance(other, Pointer):
            return NotImplemented
        return self._tokens == other._tokens

    def __hash__(self):
        return hash(self._tokens)

    def __str__(self):
        return "".join(f"/{escape(token)}" for token in self._tokens)

    def __repr__(self):
        return f"Pointer({str(self)!r})"
