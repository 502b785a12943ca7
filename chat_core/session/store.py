"""会话状态容器。

ConversationStore 是消息日志、流式缓冲区与加载/提示状态的唯一数据源。
每一次请求周期的状态迁移：

    IDLE --send_message--> SENDING --首个片段--> STREAMING --流结束--> IDLE
    SENDING/STREAMING --NetworkError/ServerError--> IDLE（丢弃缓冲区，给出错误提示）

同一时刻只允许一个在途周期，非 IDLE 状态下的新提交直接拒绝；seed 之前的提交同样拒绝。
所有写操作都发生在 store 自己的协程里，观察者只拿到不可变快照。
"""

import asyncio
import logging
import time
from contextlib import aclosing
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.conversation import (
    ConversationSnapshot,
    CycleState,
    Notice,
    SnapshotListener,
)
from chat_core.domain.exceptions import BusinessError
from chat_core.domain.models import Message
from chat_core.infrastructure.events.signal_bus import RESPONSE_FINISHED, RESPONSE_STARTED, SignalBus
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers.base import CompletionTransport
from chat_core.providers.stream_decoder import StreamDecoder, iter_snapshots


async def stream_completion(
    transport: CompletionTransport,
    history: Sequence[Message],
    decoder: Optional[StreamDecoder] = None,
) -> AsyncIterator[str]:
    """发送完整历史并逐个产出累计文本快照，结束后释放字节流。"""

    stream = await transport.send(history)
    try:
        async for snapshot in iter_snapshots(stream, decoder):
            yield snapshot
    finally:
        await stream.aclose()


class ConversationStore:
    def __init__(
        self,
        transport: CompletionTransport,
        bus: SignalBus,
        cfg=settings,
        decoder_factory: Callable[[], StreamDecoder] = StreamDecoder,
    ):
        self._transport = transport
        self._bus = bus
        self._settings = cfg
        self._decoder_factory = decoder_factory
        self._messages: Tuple[Message, ...] = ()
        self._streaming: Optional[str] = None
        self._loading = False
        self._state = CycleState.IDLE
        self._notice: Optional[Notice] = None
        self._initialized = False
        self._listeners: List[SnapshotListener] = []

    # ---- 只读视图 ----

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self._messages

    @property
    def streaming(self) -> Optional[str]:
        return self._streaming

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def notice(self) -> Optional[Notice]:
        return self._notice

    @property
    def initialized(self) -> bool:
        return self._initialized

    def snapshot(self) -> ConversationSnapshot:
        return ConversationSnapshot(
            messages=self._messages,
            streaming=self._streaming,
            is_loading=self._loading,
            state=self._state,
            notice=self._notice,
            initialized=self._initialized,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """注册观察者，返回取消订阅函数。"""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- 初始化与提示 ----

    def seed(self, system: Message, welcome: Optional[Message] = None) -> None:
        """写入会话开头的 system 消息（及欢迎消息）。

        日志为空时写入 [system, welcome]；已有消息时只在缺少 system 时补到首位，
        已确立的首条 system 消息不会被替换。
        """

        if not self._messages:
            self._messages = (system,) + ((welcome,) if welcome else ())
        elif self._messages[0].role != "system":
            self._messages = (system,) + self._messages
        self._initialized = True
        self._publish()

    def notify(self, notice: Notice) -> None:
        self._notice = notice
        self._publish()

    def dismiss_notice(self) -> None:
        if self._notice is not None:
            self._notice = None
            self._publish()

    # ---- 请求周期 ----

    async def send_message(self, content: str) -> bool:
        """提交一条用户消息并驱动完整的请求周期。

        Returns:
            是否受理。会话未初始化、空文本或已有在途周期时返回 False，状态不变。
        """

        if self._state is not CycleState.IDLE:
            logger.warning("Rejected submission while a cycle is in flight", extra={"extra": {"state": self._state.value}})
            return False
        if not content or not content.strip():
            return False
        if not self._initialized:
            logger.warning("Rejected submission before the session was initialized")
            return False

        start_time = time.time()
        log_ctx: Dict[str, Any] = {"cycle_id": f"cy-{uuid4().hex}"}

        history = self._messages + (Message(role="user", content=content),)
        self._messages = history
        self._notice = None
        self._loading = True
        self._state = CycleState.SENDING
        self._publish()
        self._bus.emit(RESPONSE_STARTED)

        self._log(
            logging.INFO,
            "Calling completion endpoint",
            log_ctx,
            transport=getattr(self._transport, "name", "unknown"),
            message_count=len(history),
        )

        decoder = self._decoder_factory()
        delay = getattr(self._settings, "typewriter_delay", 0.0)
        try:
            async with aclosing(stream_completion(self._transport, history, decoder)) as snapshots:
                async for snapshot in snapshots:
                    self._streaming = snapshot
                    self._state = CycleState.STREAMING
                    self._publish()
                    if delay:
                        await asyncio.sleep(delay)
            self._messages = self._messages + (Message(role="assistant", content=decoder.text),)
            self._log(
                logging.INFO,
                "Stored assistant message",
                log_ctx,
                fragments=decoder.fragments,
                skipped=decoder.skipped,
                elapsed_seconds=round(time.time() - start_time, 2),
            )
        except BusinessError as e:
            self._notice = Notice(level="error", title="An error occurred")
            self._log(
                logging.ERROR,
                "Completion cycle failed",
                log_ctx,
                code=e.code,
                error=e.message[:500],
                http_status=e.http_status,
                discarded_chars=len(self._streaming or ""),
            )
        finally:
            self._streaming = None
            self._loading = False
            self._state = CycleState.IDLE
            self._publish()
            self._bus.emit(RESPONSE_FINISHED)
        return True

    def _publish(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
