"""
Tests for OperationHooks and the tracked_operation wrapper.
"""

import logging
from datetime import datetime, timezone

import pytest

from blaster_base.services.crud import LogLevel, OperationHooks
from shared.infrastructure.correlation import get_operation_id
from shared.utils.exceptions import NotFoundError
from tests.entities import FirstEntity, SecondEntity


class TestOperationHooks:
    def test_hooks_unset_are_noops(self, first_bll):
        assert first_bll.get_all() == []

    def test_start_and_end_hooks(self, first_bll):
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        events = []

        def on_start(caller, method_name):
            events.append(("start", caller, method_name))
            return stamp

        def on_end(caller, started_at, method_name):
            events.append(("end", caller, method_name, started_at))

        OperationHooks.on_method_start = on_start
        OperationHooks.on_method_end = on_end

        first_bll.get_all()

        assert events == [
            ("start", first_bll, "get_all"),
            ("end", first_bll, "get_all", stamp),
        ]

    def test_default_start_is_current_time(self, first_bll):
        received = []
        OperationHooks.on_method_end = lambda caller, started_at, name: received.append(started_at)

        first_bll.get_by_ids([])

        assert received[0].tzinfo is not None

    def test_error_is_logged_and_reraised(self, first_bll):
        logged = []
        OperationHooks.on_log = lambda level, message, exc: logged.append((level, message, exc))
        ended = []
        OperationHooks.on_method_end = lambda *args: ended.append(args)

        with pytest.raises(NotFoundError) as exc_info:
            first_bll.delete(12345)

        assert len(logged) == 1
        level, message, exc = logged[0]
        assert level is LogLevel.ERROR
        assert exc is exc_info.value
        assert "12345" in message
        assert ended == []

    def test_library_error_is_logged_once(self, first_bll, caplog):
        with caplog.at_level(logging.WARNING):
            with pytest.raises(NotFoundError):
                first_bll.delete(404)

        messages = [r.getMessage() for r in caplog.records]
        assert messages.count("FirstEntity with ID 404 not found") == 1
        assert "BLL operation failed" not in messages

    def test_unexpected_error_is_logged_by_outermost_call(self, first_bll, caplog):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(TypeError):
                first_bll.insert(SecondEntity())

        failures = [r for r in caplog.records if r.getMessage() == "BLL operation failed"]
        assert len(failures) == 1
        assert failures[0].extra_data["operation"] == "insert"

    def test_nested_operations_share_operation_id(self, second_bll):
        seen = []

        def on_start(caller, method_name):
            seen.append((caller.model, method_name, get_operation_id()))
            return datetime.now(timezone.utc)

        OperationHooks.on_method_start = on_start

        second_bll.save(SecondEntity(first_entity=FirstEntity(int_value=1)))

        assert [(model, name) for model, name, _ in seen] == [
            (SecondEntity, "save"),
            (FirstEntity, "save"),
        ]
        operation_ids = {op_id for _, _, op_id in seen}
        assert len(operation_ids) == 1
        assert operation_ids.pop()
        assert get_operation_id() == ""

    def test_clear(self):
        OperationHooks.on_log = print
        OperationHooks.clear()

        assert OperationHooks.on_log is None
        assert OperationHooks.on_method_start is None
        assert OperationHooks.on_method_end is None
