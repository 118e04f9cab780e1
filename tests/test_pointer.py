import pytest

from contextpatch.error import InvalidOperationError, InvalidPathError, PathNotFoundError
from contextpatch.pointer import Pointer, escape, index, unescape
from dataclasses import dataclass, field


def test_parse_root():
    assert Pointer.parse("") == Pointer()
    assert Pointer.parse("").is_root


def test_parse_tokens():
    assert Pointer.parse("/a/b/0").tokens == ("a", "b", "0")


def test_parse_empty_token():
    assert Pointer.parse("/").tokens == ("",)
    assert Pointer.parse("/a/").tokens == ("a", "")


def test_parse_rfc_6901_escapes():
    assert Pointer.parse("/a~1b").tokens == ("a/b",)
    assert Pointer.parse("/m~0n").tokens == ("m~n",)
    assert Pointer.parse("/~01").tokens == ("~1",)  # not "/"


def test_parse_no_leading_slash():
    with pytest.raises(InvalidPathError):
        Pointer.parse("a/b")


def test_parse_invalid_escape():
    with pytest.raises(InvalidPathError):
        Pointer.parse("/a~2b")
    with pytest.raises(InvalidPathError):
        Pointer.parse("/a~")


def test_parse_not_str():
    with pytest.raises(InvalidPathError):
        Pointer.parse(1)


def test_str_round_trip():
    for s in ("", "/", "/a~1b/m~0n", "/foo/0/-"):
        assert str(Pointer.parse(s)) == s


def test_escape_unescape():
    assert escape("a/b~c") == "a~1b~0c"
    assert unescape("a~1b~0c") == "a/b~c"


def test_equality_and_hash():
    assert Pointer.parse("/a/b") == Pointer(("a", "b"))
    assert Pointer.parse("/a/b") != Pointer.parse("/a")
    assert len({Pointer.parse("/a"), Pointer(["a"])}) == 1


def test_tokens_must_be_str():
    with pytest.raises(TypeError):
        Pointer(("a", 0))


def test_truediv():
    assert Pointer() / "a" / 0 == Pointer.parse("/a/0")


def test_getitem_and_len():
    p = Pointer.parse("/a/b/c")
    assert len(p) == 3
    assert p[0] == "a"
    assert p[:2] == Pointer.parse("/a/b")
    assert list(p) == ["a", "b", "c"]


def test_parent_and_name():
    p = Pointer.parse("/a/b")
    assert p.parent == Pointer.parse("/a")
    assert p.name == "b"


def test_root_parent():
    with pytest.raises(InvalidOperationError):
        Pointer().parent


def test_is_append():
    assert Pointer.parse("/tags/-").is_append
    assert not Pointer.parse("/tags/0").is_append
    assert not Pointer().is_append


def test_is_prefix_of():
    assert Pointer.parse("/a/b").is_prefix_of(Pointer.parse("/a/b/d"))
    assert Pointer().is_prefix_of(Pointer.parse("/a"))
    assert not Pointer.parse("/a/b").is_prefix_of(Pointer.parse("/a/b"))
    assert not Pointer.parse("/a/b").is_prefix_of(Pointer.parse("/a/bc"))
    assert not Pointer.parse("/a/b/d").is_prefix_of(Pointer.parse("/a/b"))


def test_index_valid():
    assert index("0") == 0
    assert index("10") == 10


def test_index_invalid():
    for token in ("01", "-1", "+1", "1.0", "a", "", "-"):
        with pytest.raises(InvalidPathError):
            index(token)


def test_resolve_document():
    doc = {"foo": ["bar", "baz"], "": 0, "a/b": 1, "m~n": 8}
    assert Pointer.parse("").resolve(doc) == doc
    assert Pointer.parse("/foo").resolve(doc) == ["bar", "baz"]
    assert Pointer.parse("/foo/0").resolve(doc) == "bar"
    assert Pointer.parse("/").resolve(doc) == 0
    assert Pointer.parse("/a~1b").resolve(doc) == 1
    assert Pointer.parse("/m~0n").resolve(doc) == 8


def test_resolve_missing_key():
    with pytest.raises(PathNotFoundError):
        Pointer.parse("/a/b").resolve({"a": {}})


def test_resolve_index_out_of_range():
    with pytest.raises(PathNotFoundError):
        Pointer.parse("/a/3").resolve({"a": [1, 2, 3]})


def test_resolve_malformed_index():
    with pytest.raises(InvalidPathError):
        Pointer.parse("/a/01").resolve({"a": [1, 2, 3]})


def test_resolve_append_marker():
    with pytest.raises(InvalidPathError):
        Pointer.parse("/a/-").resolve({"a": [1, 2, 3]})


def test_resolve_dash_key_in_object():
    assert Pointer.parse("/a/-").resolve({"a": {"-": 1}}) == 1


def test_resolve_into_scalar():
    with pytest.raises(PathNotFoundError):
        Pointer.parse("/a/b").resolve({"a": "string"})


def test_resolve_object_attributes():
    @dataclass
    class Inner:
        from_: str

    @dataclass
    class Outer:
        inner: Inner
        tags: list[str] = field(default_factory=list)

    outer = Outer(inner=Inner(from_="x"), tags=["a", "b"])
    assert Pointer.parse("/inner/from").resolve(outer) == "x"
    assert Pointer.parse("/tags/1").resolve(outer) == "b"


def test_resolve_object_missing_attribute():
    @dataclass
    class DC:
        a: int

    with pytest.raises(PathNotFoundError):
        Pointer.parse("/b").resolve(DC(a=1))
    with pytest.raises(PathNotFoundError):
        Pointer.parse("/__class__").resolve(DC(a=1))


def test_error_carries_path():
    pointer = Pointer.parse("/a/b")
    with pytest.raises(PathNotFoundError) as exc_info:
        pointer.resolve({"a": {}})
    assert exc_info.value.path == pointer
