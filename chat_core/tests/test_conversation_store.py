"""会话状态机测试。"""

import asyncio

import pytest

from chat_core.domain.conversation import CycleState
from chat_core.domain.exceptions import NetworkError, ServerError
from chat_core.domain.models import Message
from chat_core.infrastructure.events.signal_bus import RESPONSE_FINISHED, RESPONSE_STARTED, SignalBus
from chat_core.session.store import ConversationStore


class SettingsStub:
    typewriter_delay = 0.0


class FakeStream:
    def __init__(self, chunks, error=None, gate=None):
        self._chunks = list(chunks)
        self._error = error
        self._gate = gate
        self.closed = False

    async def __aiter__(self):
        if self._gate is not None:
            await self._gate.wait()
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    async def aclose(self):
        self.closed = True


class FakeTransport:
    name = "fake"

    def __init__(self, *streams, send_error=None):
        self._streams = list(streams)
        self._send_error = send_error
        self.calls = []

    async def send(self, history):
        self.calls.append(list(history))
        if self._send_error is not None:
            raise self._send_error
        return self._streams.pop(0)


SYSTEM = Message(role="system", content="sys")
WELCOME = Message(role="assistant", content="welcome, mortal")


def make_store(transport, bus=None):
    store = ConversationStore(transport, bus or SignalBus(), cfg=SettingsStub())
    store.seed(SYSTEM, WELCOME)
    return store


def roko_stream():
    return FakeStream([b'data: {"content":"Ro"}\n', b'data: {"content":"ko"}\n'])


@pytest.mark.asyncio
async def test_hello_end_to_end():
    transport = FakeTransport(roko_stream())
    store = make_store(transport)

    assert await store.send_message("Hello") is True

    assert store.messages[-2:] == (
        Message(role="user", content="Hello"),
        Message(role="assistant", content="Roko"),
    )
    assert store.streaming is None
    assert store.is_loading is False
    assert store.state is CycleState.IDLE
    assert transport.calls[0] == [SYSTEM, WELCOME, Message(role="user", content="Hello")]


@pytest.mark.asyncio
async def test_successful_cycle_appends_exactly_user_then_assistant():
    stream = roko_stream()
    store = make_store(FakeTransport(stream))
    before = store.messages

    await store.send_message("Hello")

    assert store.messages[: len(before)] == before
    assert [m.role for m in store.messages[len(before):]] == ["user", "assistant"]
    assert stream.closed


@pytest.mark.asyncio
async def test_every_request_carries_the_full_history():
    transport = FakeTransport(roko_stream(), FakeStream([b'data: {"content":"again"}\n']))
    store = make_store(transport)

    await store.send_message("one")
    await store.send_message("two")

    assert transport.calls[1] == [
        SYSTEM,
        WELCOME,
        Message(role="user", content="one"),
        Message(role="assistant", content="Roko"),
        Message(role="user", content="two"),
    ]


@pytest.mark.asyncio
async def test_dispatch_failure_keeps_user_message_only():
    store = make_store(FakeTransport(send_error=NetworkError(code="NETWORK_ERROR", message="down")))
    before = store.messages

    assert await store.send_message("Hello") is True

    assert store.messages == before + (Message(role="user", content="Hello"),)
    assert store.notice is not None and store.notice.level == "error"
    assert store.state is CycleState.IDLE
    assert store.is_loading is False


@pytest.mark.asyncio
async def test_mid_stream_failure_discards_partial_reply():
    stream = FakeStream(
        [b'data: {"content":"partial"}\n'],
        error=NetworkError(code="STREAM_INTERRUPTED", message="reset"),
    )
    store = make_store(FakeTransport(stream))
    seen = []
    store.subscribe(lambda snap: seen.append(snap.streaming))
    before = store.messages

    await store.send_message("Hello")

    assert "partial" in seen
    assert store.messages == before + (Message(role="user", content="Hello"),)
    assert all(m.content != "partial" for m in store.messages)
    assert store.streaming is None
    assert stream.closed


@pytest.mark.asyncio
async def test_server_error_surfaces_notice_and_store_stays_usable():
    transport = FakeTransport(roko_stream())
    store = make_store(transport)
    transport._send_error = ServerError(code="SERVER_ERROR", message="bad", http_status=500)

    await store.send_message("first")
    assert store.notice.title == "An error occurred"

    transport._send_error = None
    await store.send_message("second")
    assert store.notice is None
    assert store.messages[-1] == Message(role="assistant", content="Roko")


@pytest.mark.asyncio
async def test_buffer_is_set_only_while_streaming():
    store = make_store(FakeTransport(roko_stream()))
    snaps = []
    store.subscribe(snaps.append)

    await store.send_message("Hello")

    assert [s.state for s in snaps] == [
        CycleState.SENDING,
        CycleState.STREAMING,
        CycleState.STREAMING,
        CycleState.IDLE,
    ]
    for snap in snaps:
        assert (snap.streaming is not None) == (snap.state is CycleState.STREAMING)
    assert [s.streaming for s in snaps if s.streaming] == ["Ro", "Roko"]


@pytest.mark.asyncio
async def test_signals_bracket_the_cycle():
    bus = SignalBus()
    store = make_store(FakeTransport(roko_stream()), bus=bus)
    events = []
    bus.on(RESPONSE_STARTED, lambda: events.append(("started", store.state)))
    bus.on(RESPONSE_FINISHED, lambda: events.append(("finished", store.state)))
    store.subscribe(lambda snap: snap.streaming and events.append(("fragment", snap.streaming)))

    await store.send_message("Hello")

    assert events == [
        ("started", CycleState.SENDING),
        ("fragment", "Ro"),
        ("fragment", "Roko"),
        ("finished", CycleState.IDLE),
    ]


@pytest.mark.asyncio
async def test_finished_signal_fires_once_on_failure():
    bus = SignalBus()
    store = make_store(FakeTransport(send_error=NetworkError(code="NETWORK_ERROR", message="x")), bus=bus)
    events = []
    bus.on(RESPONSE_STARTED, lambda: events.append("started"))
    bus.on(RESPONSE_FINISHED, lambda: events.append("finished"))

    await store.send_message("Hello")

    assert events == ["started", "finished"]


@pytest.mark.asyncio
async def test_submission_while_loading_is_rejected():
    gate = asyncio.Event()
    store = make_store(FakeTransport(FakeStream([b'data: {"content":"ok"}\n'], gate=gate)))

    task = asyncio.create_task(store.send_message("first"))
    await asyncio.sleep(0)
    assert store.is_loading
    before = store.messages

    assert await store.send_message("second") is False
    assert store.messages == before
    assert store.streaming is None

    gate.set()
    assert await task is True
    assert store.messages[-1] == Message(role="assistant", content="ok")


@pytest.mark.asyncio
async def test_blank_submission_is_rejected():
    transport = FakeTransport()
    store = make_store(transport)
    before = store.messages

    assert await store.send_message("   ") is False
    assert store.messages == before
    assert transport.calls == []


@pytest.mark.asyncio
async def test_stream_without_fragments_commits_empty_reply():
    store = make_store(FakeTransport(FakeStream([b"\n", b": ping\n"])))

    await store.send_message("Hello")

    assert store.messages[-1] == Message(role="assistant", content="")


@pytest.mark.asyncio
async def test_unexpected_error_still_returns_to_idle():
    bus = SignalBus()
    store = make_store(FakeTransport(send_error=RuntimeError("bug")), bus=bus)
    finished = []
    bus.on(RESPONSE_FINISHED, lambda: finished.append(True))

    with pytest.raises(RuntimeError):
        await store.send_message("Hello")

    assert store.state is CycleState.IDLE
    assert store.is_loading is False
    assert finished == [True]


def test_seed_never_replaces_established_system_message():
    store = make_store(FakeTransport())
    store.seed(Message(role="system", content="other"), Message(role="assistant", content="hey"))
    assert store.messages == (SYSTEM, WELCOME)
    assert store.initialized


def test_unsubscribe_and_dismiss_notice():
    from chat_core.domain.conversation import Notice

    store = make_store(FakeTransport())
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.notify(Notice(level="warning", title="careful"))
    unsubscribe()
    store.dismiss_notice()
    assert len(seen) == 1
    assert store.notice is None


@pytest.mark.asyncio
async def test_submission_before_seed_is_rejected():
    transport = FakeTransport(roko_stream())
    store = ConversationStore(transport, SignalBus(), cfg=SettingsStub())

    assert await store.send_message("Hello") is False

    assert store.messages == ()
    assert store.state is CycleState.IDLE
    assert transport.calls == []


@pytest.mark.asyncio
async def test_failing_listener_releases_stream_immediately():
    stream = roko_stream()
    store = make_store(FakeTransport(stream))

    def explode(snap):
        if snap.streaming:
            raise RuntimeError("listener bug")

    store.subscribe(explode)

    with pytest.raises(RuntimeError):
        await store.send_message("Hello")

    assert stream.closed
