"""Tests for MemoryValue."""

import asyncio
import logging

import pytest

from memval import UNDETERMINED, MemoryValue

INITIAL_STATE = {"foo": 42, "bar": "yes"}


class TestCurrent:
    def test_seed(self):
        v = MemoryValue(INITIAL_STATE)
        assert v.current == INITIAL_STATE
        assert v.is_determined

    def test_undetermined_without_seed(self):
        v = MemoryValue()
        assert v.current is UNDETERMINED
        assert not v.is_determined

    def test_updates_without_subscribers(self):
        """A value mutated while nobody listens still reflects the change."""
        v = MemoryValue(INITIAL_STATE)
        v.emit({**INITIAL_STATE, "baz": True})
        assert v.current["baz"] is True

    def test_update_fn(self):
        v = MemoryValue(INITIAL_STATE)
        v.update(lambda prev: {**prev, "foo": prev["foo"] + 1})
        assert v.current == {"foo": 43, "bar": "yes"}

    def test_repr(self):
        assert "MemoryValue(5" in repr(MemoryValue(5))


class TestEmit:
    def test_dedup(self):
        """Re-emitting a deep-equal value notifies once."""
        v = MemoryValue()
        log = []
        v.subscribe(log.append)
        v.emit({"a": [1, 2]})
        v.emit({"a": [1, 2]})
        assert log == [{"a": [1, 2]}]

    def test_bool_and_int_are_different_values(self):
        v = MemoryValue(1)
        log = []
        v.subscribe(log.append, emit=False)
        v.emit(True)
        v.emit({"a": 0})
        v.emit({"a": False})
        assert v.current == {"a": False}
        assert v.current["a"] is False
        assert log == [True, {"a": 0}, {"a": False}]

    def test_dedup_returns_current(self):
        v = MemoryValue({"a": 1})
        emission = v.emit({"a": 1})
        assert not emission.accepted
        assert emission.value is v.current

    def test_new_only_false_always_notifies(self):
        v = MemoryValue(1)
        log = []
        v.subscribe(log.append, emit=False)
        v.emit(1, new_only=False)
        v.emit(1, new_only=False)
        assert log == [1, 1]

    def test_emit_undetermined_resets(self):
        v = MemoryValue(1)
        log = []
        v.subscribe(log.append, emit=False)
        v.emit(UNDETERMINED)
        assert v.current is UNDETERMINED
        assert log == [UNDETERMINED]

    def test_persist_flag_ignored(self):
        v = MemoryValue(1)
        v.emit(2, persist=True)
        assert v.current == 2


class TestSubscribe:
    def test_emits_current_on_subscribe(self):
        v = MemoryValue(7)
        log = []
        v.subscribe(log.append)
        assert log == [7]

    def test_no_emit_when_undetermined(self):
        v = MemoryValue()
        log = []
        v.subscribe(log.append)
        assert log == []

    def test_emit_false(self):
        v = MemoryValue(7)
        log = []
        v.subscribe(log.append, emit=False)
        assert log == []

    def test_order(self):
        v = MemoryValue()
        calls = []
        v.subscribe(lambda x: calls.append(("L1", x)))
        v.subscribe(lambda x: calls.append(("L2", x)))
        v.subscribe(lambda x: calls.append(("L3", x)))
        v.emit("x")
        assert calls == [("L1", "x"), ("L2", "x"), ("L3", "x")]

    def test_isolation(self):
        a, b = MemoryValue(0), MemoryValue(0)
        log_a, log_b = [], []
        a.subscribe(log_a.append, emit=False)
        b.subscribe(log_b.append, emit=False)
        a.emit(1)
        assert log_a == [1]
        assert log_b == []

    def test_non_callable_rejected(self):
        with pytest.raises(TypeError):
            MemoryValue().subscribe("nope")


class TestUnsubscribe:
    def test_handle(self):
        v = MemoryValue(0)
        log = []
        unsub = v.subscribe(log.append, emit=False)
        v.emit(1)
        unsub()
        v.emit(2)
        assert log == [1]
        assert v.listener_count == 0

    def test_handle_idempotent(self):
        v = MemoryValue(0)
        unsub = v.subscribe(lambda x: None)
        unsub()
        unsub()  # should not raise

    def test_by_reference(self):
        v = MemoryValue(0)
        log = []
        v.subscribe(log.append, emit=False)
        v.unsubscribe(log.append)  # bound methods compare equal but are not identical
        assert v.listener_count == 1

        def listener(x):
            log.append(x)

        v.subscribe(listener, emit=False)
        v.unsubscribe(listener)
        v.unsubscribe(listener)  # no-op
        assert v.listener_count == 1

    def test_duplicates_are_additive(self):
        v = MemoryValue(0)
        log = []

        def listener(x):
            log.append(x)

        first = v.subscribe(listener, emit=False)
        v.subscribe(listener, emit=False)
        v.emit(1)
        assert log == [1, 1]

        first()
        first()  # only removes its own registration
        v.emit(2)
        assert log == [1, 1, 2]

        v.unsubscribe(listener)
        v.emit(3)
        assert log == [1, 1, 2]

    def test_during_own_invocation(self):
        v = MemoryValue(0)
        log = []

        def listener(x):
            log.append(x)
            unsub()

        unsub = v.subscribe(listener, emit=False)
        v.emit(1)
        v.emit(2)
        assert log == [1]

    def test_during_subscribe_emit(self):
        v = MemoryValue(5)
        log = []

        def listener(x):
            log.append(x)
            v.unsubscribe(listener)

        v.subscribe(listener)
        v.emit(6)
        assert log == [5]

    def test_later_listener_removed_mid_notification(self):
        v = MemoryValue(0)
        log = []

        def second(x):
            log.append(("second", x))

        def first(x):
            log.append(("first", x))
            v.unsubscribe(second)

        v.subscribe(first, emit=False)
        v.subscribe(second, emit=False)
        v.emit(1)
        assert log == [("first", 1)]

    def test_added_during_notification_waits_for_next(self):
        v = MemoryValue(0)
        log = []

        def late(x):
            log.append(("late", x))

        def first(x):
            log.append(("first", x))
            if x == 1:
                v.subscribe(late, emit=False)

        v.subscribe(first, emit=False)
        v.emit(1)
        assert log == [("first", 1)]
        v.emit(2)
        assert log == [("first", 1), ("first", 2), ("late", 2)]


class TestListenerErrors:
    def test_failing_listener_is_isolated(self, caplog):
        v = MemoryValue(0)
        log = []

        def boom(x):
            raise RuntimeError("boom")

        v.subscribe(boom, emit=False)
        v.subscribe(log.append, emit=False)
        with caplog.at_level(logging.WARNING, logger="memval"):
            v.emit(1)

        assert v.current == 1
        assert log == [1]
        assert "listener failed" in caplog.text
        assert "boom" in caplog.text

    def test_async_listener_without_loop(self, caplog):
        v = MemoryValue(0)

        async def listener(x):
            pass

        v.subscribe(listener, emit=False)
        with caplog.at_level(logging.WARNING, logger="memval"):
            emission = v.emit(1)

        assert emission.done
        assert "outside an event loop" in caplog.text


class TestAsyncListeners:
    @pytest.mark.asyncio
    async def test_await_returns_value(self):
        v = MemoryValue(0)
        assert await v.emit(3) == 3

    @pytest.mark.asyncio
    async def test_dispatch_in_parallel(self):
        v = MemoryValue(0)
        started, finished = [], []
        gate = asyncio.Event()

        async def slow(x):
            started.append("slow")
            await gate.wait()
            finished.append("slow")

        async def fast(x):
            started.append("fast")
            finished.append("fast")
            gate.set()

        v.subscribe(slow, emit=False)
        v.subscribe(fast, emit=False)
        emission = v.emit(1)
        assert not emission.done

        await asyncio.wait_for(emission, timeout=1)
        assert emission.done
        assert started == ["slow", "fast"]
        assert finished == ["fast", "slow"]

    @pytest.mark.asyncio
    async def test_mixed_sync_and_async(self):
        v = MemoryValue()
        log = []

        async def slow(x):
            await asyncio.sleep(0)
            log.append(("async", x))

        v.subscribe(slow)
        v.subscribe(lambda x: log.append(("sync", x)))
        await v.emit("a")
        assert sorted(log) == [("async", "a"), ("sync", "a")]

    @pytest.mark.asyncio
    async def test_async_failure_is_reported(self, caplog):
        v = MemoryValue(0)
        log = []

        async def boom(x):
            raise ValueError("async boom")

        async def ok(x):
            log.append(x)

        v.subscribe(boom, emit=False)
        v.subscribe(ok, emit=False)
        with caplog.at_level(logging.WARNING, logger="memval"):
            await v.emit(1)

        assert log == [1]
        assert "listener failed" in caplog.text
        assert "async boom" in caplog.text

    @pytest.mark.asyncio
    async def test_async_listener_on_subscribe(self):
        v = MemoryValue("seed")
        seen = asyncio.get_running_loop().create_future()

        async def listener(x):
            seen.set_result(x)

        v.subscribe(listener)
        assert await asyncio.wait_for(seen, timeout=1) == "seed"
