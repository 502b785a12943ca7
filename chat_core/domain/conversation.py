from dataclasses import dataclass
from enum import Enum
from typing import Callable, Literal, Optional, Protocol, Tuple

from .models import Message


class CycleState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"


@dataclass(frozen=True)
class Notice:
    """可关闭的临时提示（错误/警告）。"""

    level: Literal["error", "warning", "info"]
    title: str


@dataclass(frozen=True)
class ConversationSnapshot:
    messages: Tuple[Message, ...]
    streaming: Optional[str]
    is_loading: bool
    state: CycleState
    notice: Optional[Notice]
    initialized: bool


SnapshotListener = Callable[[ConversationSnapshot], None]


class ConversationView(Protocol):
    def snapshot(self) -> ConversationSnapshot:
        ...

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        ...
