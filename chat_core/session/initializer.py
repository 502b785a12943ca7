"""会话初始化流程。

首次激活会话时执行一次：
1. 从配置服务获取当前生效的 PromptConfiguration。
2. 成功：用 system_message 构造 system 消息；日志为空时再准备欢迎消息，
   greeting 非空则原样使用，否则通过同一条流式链路生成一句开场白。
3. 任何失败：回退到内置默认 system 消息与默认欢迎语，并给出非阻塞的警告提示。
4. 幂等：完成后再次调用不会发出任何请求。
"""

import asyncio
from typing import Optional, Protocol

from chat_core.config.settings import settings
from chat_core.domain.conversation import Notice
from chat_core.domain.exceptions import BusinessError
from chat_core.domain.models import Message, PromptConfiguration
from chat_core.infrastructure.logging.logger import logger
from chat_core.prompts import (
    DEFAULT_WELCOME_LINE,
    default_system_message,
    default_welcome_message,
    load_welcome_instruction,
)
from chat_core.providers.base import CompletionTransport
from chat_core.session.store import ConversationStore, stream_completion


class PromptSource(Protocol):
    async def get_active_prompt(self) -> PromptConfiguration:
        ...


class InitializationSequencer:
    def __init__(
        self,
        store: ConversationStore,
        prompt_service: PromptSource,
        transport: CompletionTransport,
        cfg=settings,
    ):
        self._store = store
        self._prompt_service = prompt_service
        self._transport = transport
        self._settings = cfg
        self._lock = asyncio.Lock()
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    async def run(self) -> None:
        async with self._lock:
            if self._done:
                return
            locale = getattr(self._settings, "prompt_locale", "en")
            try:
                prompt = await self._prompt_service.get_active_prompt()
            except BusinessError as e:
                logger.warning(
                    "Prompt configuration unavailable, using defaults",
                    extra={"extra": {"code": e.code, "error": e.message[:200]}},
                )
                self._store.seed(default_system_message(locale), default_welcome_message())
                self._store.notify(Notice(level="warning", title="Using default system message"))
            else:
                system = Message(role="system", content=prompt.system_message)
                welcome: Optional[Message] = None
                if not self._store.messages:
                    welcome = Message(role="assistant", content=await self._welcome_text(system, prompt.greeting, locale))
                self._store.seed(system, welcome)
                logger.info(
                    "Conversation initialized",
                    extra={"extra": {"prompt_id": prompt.id, "greeting": bool(prompt.greeting and prompt.greeting.strip())}},
                )
            self._done = True

    async def _welcome_text(self, system: Message, greeting: Optional[str], locale: str) -> str:
        if greeting and greeting.strip():
            return greeting
        history = [system, Message(role="user", content=load_welcome_instruction(locale))]
        text = ""
        try:
            async for snapshot in stream_completion(self._transport, history):
                text = snapshot
        except BusinessError as e:
            logger.warning(
                "Welcome generation failed, using default line",
                extra={"extra": {"code": e.code, "error": e.message[:200]}},
            )
            return DEFAULT_WELCOME_LINE
        text = text.strip().strip('"').strip()
        return text or DEFAULT_WELCOME_LINE
