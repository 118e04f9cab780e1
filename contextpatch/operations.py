"""
Module that implements JSON Patch operations on document nodes, per RFC 6902.

A document node is a JSON value as decoded into Python: None, bool, int, float, str, a list
of nodes, or a dict mapping str keys to nodes. Operations never mutate the document they are
passed; each returns a new document, leaving the original intact if the operation fails.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextpatch.error import (
    InvalidOperationError,
    InvalidPathError,
    PatchError,
    PathNotFoundError,
)
from contextpatch.pointer import APPEND, Pointer, index, is_array
from copy import deepcopy
from typing import Any


Node = Any


@contextmanager
def _located(path: Pointer) -> Iterator[None]:
    try:
        yield
    except PatchError as pe:
        pe.path = path
        raise


def _container(document: Node, path: Pointer) -> dict | list:
    parent = path.parent.resolve(document)
    if not isinstance(parent, dict | list):
        raise PathNotFoundError(f"cannot resolve {path.name!r} in {type(parent).__name__}")
    return parent


def _insert(document: Node, path: Pointer, value: Node) -> None:
    with _located(path):
        parent = _container(document, path)
        token = path.name
        if isinstance(parent, dict):
            parent[token] = value
        elif token == APPEND:
            parent.append(value)
        else:
            i = index(token)
            if i > len(parent):
                raise InvalidPathError(f"array index out of range: {i}")
            parent.insert(i, value)


def _delete(document: Node, path: Pointer) -> Node:
    with _located(path):
        if path.is_root:
            raise InvalidOperationError("cannot remove root")
        parent = _container(document, path)
        token = path.name
        if isinstance(parent, dict):
            if token not in parent:
                raise PathNotFoundError(f"no such key: {token!r}")
            return parent.pop(token)
        i = index(token)
        if i >= len(parent):
            raise PathNotFoundError(f"array index out of range: {i}")
        return parent.pop(i)


def add(document: Node, path: Pointer, value: Node) -> Node:
    """
    Return a document with a value added at the specified location.

    If the location is a key of an object, the member is added or replaced. If it is an index
    of an array, the value is inserted before that index; the append marker, or an index equal
    to the length of the array, appends the value. Adding at the root replaces the document.
    """
    value = deepcopy(value)
    if path.is_root:
        return value
    result = deepcopy(document)
    _insert(result, path, value)
    return result


def remove(document: Node, path: Pointer) -> Node:
    """Return a document with the value at the specified location removed."""
    result = deepcopy(document)
    _delete(result, path)
    return result


def replace(document: Node, path: Pointer, value: Node) -> Node:
    """Return a document with the existing value at the specified location replaced."""
    value = deepcopy(value)
    if path.is_root:
        return value
    result = deepcopy(document)
    with _located(path):
        parent = _container(result, path)
        token = path.name
        if isinstance(parent, dict):
            if token not in parent:
                raise PathNotFoundError(f"no such key: {token!r}")
            parent[token] = value
        else:
            i = index(token)
            if i >= len(parent):
                raise PathNotFoundError(f"array index out of range: {i}")
            parent[i] = value
    return result


def move(document: Node, from_: Pointer, path: Pointer) -> Node:
    """
    Return a document with the value at one location moved to another.

    A value cannot be moved into one of its own descendants. Moving a value to its own
    location leaves the document unchanged.
    """
    with _located(from_):
        from_.resolve(document)
    if from_ == path:
        return deepcopy(document)
    if from_.is_prefix_of(path):
        raise InvalidOperationError("cannot move a value into its own descendant", path=path)
    result = deepcopy(document)
    value = _delete(result, from_)
    if path.is_root:
        return value
    _insert(result, path, value)
    return result


def copy(document: Node, from_: Pointer, path: Pointer) -> Node:
    """Return a document with the value at one location copied to another."""
    with _located(from_):
        value = from_.resolve(document)
    return add(document, path, value)


def test(document: Node, path: Pointer, value: Node) -> bool:
    """Return if the value at the specified location is equal to the specified value."""
    with _located(path):
        return equal(path.resolve(document), value)


test.__test__ = False  # not a pytest test function


def equal(a: Node, b: Node) -> bool:
    """
    Return if two document nodes are structurally equal.

    Numbers are equal if numerically equal (1 == 1.0); booleans are never equal to numbers.
    Arrays are compared in order; objects are compared irrespective of member order.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, int | float) and isinstance(b, int | float):
        return a == b
    if isinstance(a, str) or isinstance(b, str):
        return isinstance(a, str) and isinstance(b, str) and a == b
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        return a.keys() == b.keys() and all(equal(a[k], b[k]) for k in a)
    if is_array(a) and is_array(b):
        return len(a) == len(b) and all(equal(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b
