"""装饰性监听者。

与会话逻辑没有业务关系，只响应信号总线或会话快照：
- EyeBlinkEffect: 回复开始时眼睛闪烁，回复结束时复位。
- TypingSoundCue: 流式缓冲区每次变化时播放一次打字音效。
"""

from typing import Callable, Optional

from chat_core.domain.conversation import ConversationSnapshot, ConversationView
from chat_core.infrastructure.events.signal_bus import RESPONSE_FINISHED, RESPONSE_STARTED, SignalBus

RESTING_INTENSITY = 1.0


class EyeBlinkEffect:
    def __init__(self, bus: SignalBus):
        self._bus = bus
        self.blinking = False
        self.emissive_intensity = RESTING_INTENSITY
        self.blink_count = 0

    def activate(self) -> None:
        self._bus.on(RESPONSE_STARTED, self._start)
        self._bus.on(RESPONSE_FINISHED, self._stop)

    def deactivate(self) -> None:
        self._bus.off(RESPONSE_STARTED, self._start)
        self._bus.off(RESPONSE_FINISHED, self._stop)
        self._stop()

    def _start(self) -> None:
        self.blinking = True
        self.blink_count += 1

    def _stop(self) -> None:
        self.blinking = False
        self.emissive_intensity = RESTING_INTENSITY


class TypingSoundCue:
    def __init__(self, store: ConversationView, play: Callable[[], None]):
        self._store = store
        self._play = play
        self._last: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def activate(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_snapshot)

    def deactivate(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_snapshot(self, snap: ConversationSnapshot) -> None:
        if snap.streaming and snap.streaming != self._last:
            self._play()
        self._last = snap.streaming
