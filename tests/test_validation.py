import pytest

from collections.abc import Callable
from contextpatch.validation import (
    MaxLen,
    MaxValue,
    MinLen,
    MinValue,
    ValidationError,
    validate,
    validate_arguments,
)
from dataclasses import make_dataclass
from typing import Annotated, Any, Literal, NotRequired, Optional, Required, TypedDict, Union


# ----- str -----


def test_str_type_success():
    validate("foo", str)


def test_str_type_error():
    with pytest.raises(ValidationError):
        validate(123, str)


def test_str_min_length_error():
    with pytest.raises(ValidationError):
        validate("123", Annotated[str, MinLen(4)])


def test_str_max_length_error():
    with pytest.raises(ValidationError):
        validate("1234567", Annotated[str, MaxLen(6)])


# ----- int -----


def test_int_bool_error():
    with pytest.raises(ValidationError):
        validate(True, int)


def test_int_min_value_error():
    with pytest.raises(ValidationError):
        validate(1, Annotated[int, MinValue(2)])


def test_int_max_value_success():
    validate(2, Annotated[int, MaxValue(2)])


# ----- containers -----


def test_list_item_error_path():
    with pytest.raises(ValidationError) as exc_info:
        validate([1, "a"], list[int])
    assert exc_info.value.path == [1]


def test_dict_value_error():
    with pytest.raises(ValidationError):
        validate({"a": "b"}, dict[str, int])


def test_tuple_length_error():
    with pytest.raises(ValidationError):
        validate((1,), tuple[int, int])


def test_typeddict_required():
    TD = TypedDict("TD", {"a": int})
    validate({"a": 1}, TD)
    with pytest.raises(ValidationError):
        validate({}, TD)


def test_typeddict_qualifiers():
    class TD(TypedDict, total=False):
        a: Required[Annotated[str, MaxLen(3)]]
        b: NotRequired[int]

    validate({"a": "abc"}, TD)
    with pytest.raises(ValidationError) as exc_info:
        validate({"a": "abcd"}, TD)
    assert exc_info.value.path == ["a"]
    with pytest.raises(ValidationError):
        validate({"a": "abc", "b": "1"}, TD)
    with pytest.raises(ValidationError):
        validate({"b": 1}, TD)


def test_dataclass_annotated_field():
    DC = make_dataclass("DC", [("a", Annotated[str, MaxLen(3)])])
    validate(DC(a="abc"), DC)
    with pytest.raises(ValidationError) as exc_info:
        validate(DC(a="abcd"), DC)
    assert exc_info.value.path == ["a"]


# ----- union, literal, any -----


def test_optional():
    validate(None, Optional[str])
    validate("a", Optional[str])
    with pytest.raises(ValidationError):
        validate(1, Optional[str])


def test_union():
    validate(1, Union[int, str])
    with pytest.raises(ValidationError):
        validate(1.5, int | str)


def test_literal():
    validate("a", Literal["a", "b"])
    with pytest.raises(ValidationError):
        validate("c", Literal["a", "b"])


def test_any():
    validate(object(), Any)


# ----- arguments -----


def test_validate_arguments_success():
    @validate_arguments
    def fn(a: int, b: str | None = None) -> int:
        return a

    assert fn(1, b="x") == 1


def test_validate_arguments_error():
    @validate_arguments
    def fn(a: int) -> int:
        return a

    with pytest.raises(ValidationError) as exc_info:
        fn("1")
    assert exc_info.value.path == ["a"]


def test_validate_arguments_callable():
    @validate_arguments
    def fn(callback: Callable) -> Any:
        return callback()

    assert fn(lambda: 1) == 1
    with pytest.raises(ValidationError):
        fn(1)
