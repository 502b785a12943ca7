"""Chat Core 顶层包。

该包提供流式聊天前端的核心实现，
包括配置加载、领域模型、补全接口客户端、流式解码、
会话状态机、初始化流程与装饰性信号总线等能力。
"""

from chat_core.api.service import ChatSession, get_default_session, run_chat

__all__ = ["ChatSession", "get_default_session", "run_chat"]
