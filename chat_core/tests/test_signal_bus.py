import pytest

from chat_core.infrastructure.events.signal_bus import RESPONSE_FINISHED, RESPONSE_STARTED, SignalBus


def test_emit_calls_handlers_in_registration_order():
    bus = SignalBus()
    calls = []
    bus.on(RESPONSE_STARTED, lambda: calls.append("a"))
    bus.on(RESPONSE_STARTED, lambda: calls.append("b"))
    bus.on(RESPONSE_FINISHED, lambda: calls.append("other"))
    bus.emit(RESPONSE_STARTED)
    assert calls == ["a", "b"]


def test_off_deregisters_and_unknown_is_noop():
    bus = SignalBus()
    calls = []

    def handler():
        calls.append(1)

    bus.on(RESPONSE_STARTED, handler)
    bus.on(RESPONSE_STARTED, handler)
    assert len(bus.listeners(RESPONSE_STARTED)) == 1
    bus.off(RESPONSE_STARTED, handler)
    bus.off(RESPONSE_STARTED, handler)
    bus.off("neverRegistered", handler)
    bus.emit(RESPONSE_STARTED)
    assert calls == []


def test_emit_without_listeners_is_noop():
    SignalBus().emit(RESPONSE_FINISHED)


def test_handler_errors_propagate():
    bus = SignalBus()

    def boom():
        raise RuntimeError("handler failed")

    bus.on(RESPONSE_STARTED, boom)
    with pytest.raises(RuntimeError):
        bus.emit(RESPONSE_STARTED)


def test_handler_may_deregister_during_emit():
    bus = SignalBus()
    calls = []

    def once():
        calls.append("once")
        bus.off(RESPONSE_STARTED, once)

    bus.on(RESPONSE_STARTED, once)
    bus.on(RESPONSE_STARTED, lambda: calls.append("always"))
    bus.emit(RESPONSE_STARTED)
    bus.emit(RESPONSE_STARTED)
    assert calls == ["once", "always", "always"]
