import logging
import pytest

from contextpatch.error import ConversionError
from contextpatch.handlers import Handlers, convert, handler, is_handler
from contextpatch.instruction import OperationKind
from contextpatch.pointer import Pointer
from contextpatch.validation import MaxLen
from dataclasses import make_dataclass
from typing import Annotated


def test_handler_infers_operation_from_name():
    @handler
    def add(context, path, value):
        return context

    assert is_handler(add)
    assert add._contextpatch_handler.op is OperationKind.ADD


def test_handler_explicit_operation():
    @handler(op="remove")
    def remove_tag(context, path):
        return context

    assert remove_tag._contextpatch_handler.op is OperationKind.REMOVE


def test_handler_unknown_operation():
    with pytest.raises(TypeError):

        @handler
        def frobnicate(context, path, value):
            pass


def test_handler_wrong_arity():
    with pytest.raises(TypeError):

        @handler
        def remove(context, path, value):
            pass


def test_handler_varargs():
    with pytest.raises(TypeError):

        @handler
        def add(context, *args):
            pass


def test_handler_calls_wrapped():
    @handler
    def test(context, path, value):
        return context[path.name] == value

    assert test({"a": 1}, Pointer.parse("/a"), 1)


def test_handler_logs_invocation(caplog):
    @handler
    def add(context, path, value):
        return context

    with caplog.at_level(logging.DEBUG, logger="contextpatch.handlers"):
        add({}, Pointer.parse("/a"), 1)
    assert "handler: add" in caplog.text


def test_handlers_kwargs():
    fn = lambda context, path, value: context
    handlers = Handlers(add=fn)
    assert handlers.get("add") is fn
    assert handlers.get(OperationKind.ADD) is fn
    assert handlers.get("remove") is None
    assert "add" in handlers
    assert len(handlers) == 1


def test_handlers_mapping():
    fn = lambda context, path: context
    handlers = Handlers({OperationKind.REMOVE: fn})
    assert list(handlers) == [OperationKind.REMOVE]


def test_handlers_unknown_operation():
    with pytest.raises(TypeError):
        Handlers(frobnicate=lambda context, path: context)


def test_handlers_not_callable():
    with pytest.raises(TypeError):
        Handlers(add="not callable")


def test_handlers_of_object():
    class TagHandlers:
        @handler
        def add(self, context, path, value):
            return context

        @handler(op="test")
        def check(self, context, path, value):
            return True

        def remove(self, context, path):  # not decorated
            return context

    handlers = Handlers.of(TagHandlers())
    assert set(handlers) == {OperationKind.ADD, OperationKind.TEST}
    assert handlers["test"]({}, Pointer(), None) is True


def test_handlers_of_object_duplicate():
    class DuplicateHandlers:
        @handler(op="add")
        def add_one(self, context, path, value):
            return context

        @handler(op="add")
        def add_two(self, context, path, value):
            return context

    with pytest.raises(TypeError):
        Handlers.of(DuplicateHandlers())


def test_convert_dataclass():
    DC = make_dataclass("DC", [("a", str)])
    assert convert({"a": "x"}, DC) == DC(a="x")


def test_convert_error():
    with pytest.raises(ConversionError):
        convert("x", int)


def test_convert_validation_error():
    with pytest.raises(ConversionError):
        convert("abcd", Annotated[str, MaxLen(3)])
