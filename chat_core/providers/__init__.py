"""HTTP 集成层。

该包下的模块负责：
- 定义传输抽象接口 (base)。
- 流式补全客户端 (completion_client) 与响应解码 (stream_decoder)。
- 提示词配置、故事提示词与媒体流等边界服务 (content_service)。
"""

from typing import Optional

import httpx

from chat_core.config.settings import settings
from chat_core.providers.base import ByteStream, CompletionTransport
from chat_core.providers.completion_client import CompletionClient
from chat_core.providers.content_service import ContentApi, PromptService


def create_transport(client: Optional[httpx.AsyncClient] = None) -> CompletionTransport:
    """根据当前配置创建补全客户端实例。"""

    return CompletionClient(settings, client=client)


def create_prompt_service(client: Optional[httpx.AsyncClient] = None) -> PromptService:
    return PromptService(ContentApi(settings, client=client))


__all__ = [
    "ByteStream",
    "CompletionClient",
    "CompletionTransport",
    "PromptService",
    "create_prompt_service",
    "create_transport",
]
