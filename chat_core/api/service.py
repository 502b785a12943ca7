"""对外 API 服务模块。

提供简化的函数接口供上层应用（页面、控制台）调用。
"""

from typing import Any, Dict, List, Optional

from chat_core.config.settings import settings
from chat_core.domain.conversation import ConversationSnapshot
from chat_core.infrastructure.events.signal_bus import SignalBus
from chat_core.infrastructure.logging.logger import logger
from chat_core.providers import create_prompt_service, create_transport
from chat_core.providers.base import CompletionTransport
from chat_core.session.initializer import InitializationSequencer, PromptSource
from chat_core.session.store import ConversationStore


class ChatSession:
    """把信号总线、会话存储与初始化流程组装在一起。"""

    def __init__(
        self,
        transport: CompletionTransport,
        prompt_service: PromptSource,
        bus: Optional[SignalBus] = None,
        cfg=settings,
    ):
        self.bus = bus or SignalBus()
        self.store = ConversationStore(transport, self.bus, cfg=cfg)
        self.initializer = InitializationSequencer(self.store, prompt_service, transport, cfg=cfg)

    async def start(self) -> ConversationSnapshot:
        """首次激活会话；重复调用不会再发请求。"""
        await self.initializer.run()
        return self.store.snapshot()

    async def send(self, content: str) -> bool:
        await self.start()
        return await self.store.send_message(content)


_session: Optional[ChatSession] = None


def get_default_session() -> ChatSession:
    """获取默认的会话实例（单例）。"""
    global _session
    if _session is None:
        _session = ChatSession(transport=create_transport(), prompt_service=create_prompt_service())
    return _session


async def run_chat(content: str) -> Dict[str, Any]:
    """提交一条用户消息并等待本轮周期结束。

    Returns:
        包含是否受理、最新助手回复与提示信息的字典
    """
    try:
        session = get_default_session()
        accepted = await session.send(content)
        snap = session.store.snapshot()
        last = snap.messages[-1] if snap.messages else None
        return {
            "accepted": accepted,
            "reply": last.content if last is not None and last.role == "assistant" else None,
            "notice": snap.notice.title if snap.notice else None,
            "message_count": len(snap.messages),
        }
    except Exception as e:
        logger.error(f"Chat failed: {e}", extra={"extra": {"error": str(e)}})
        raise


def get_conversation_messages() -> List[Dict[str, str]]:
    """返回可展示的消息列表（不含 system 消息）。"""
    session = get_default_session()
    return [m.to_payload() for m in session.store.messages if m.role != "system"]
