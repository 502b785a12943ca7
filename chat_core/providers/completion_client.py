"""流式补全接口客户端。

请求格式：
- URL: {completion_url}（内部代理路由）
- 方法: POST，正文 {"messages": [{"role": ..., "content": ...}, ...]}

响应是分块传输的 SSE 风格文本，本模块只负责发出请求并交出原始字节流，
解析交给 stream_decoder。补全接口无状态，因此每次都发送完整历史。
"""

from typing import AsyncIterator, Optional, Sequence

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import NetworkError, ServerError
from chat_core.domain.models import Message
from chat_core.infrastructure.logging.logger import logger


class HttpByteStream:
    """包装 httpx 流式响应，读取完毕或出错时释放连接。"""

    def __init__(self, response: httpx.Response, client: Optional[httpx.AsyncClient] = None):
        self._response = response
        self._client = client
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.RequestError as e:
            raise NetworkError(code="STREAM_INTERRUPTED", message=str(e) or type(e).__name__)
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()
        if self._client is not None:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpByteStream":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()


class CompletionClient:
    """补全代理路由的 httpx 客户端实现。

    传入 client 时复用调用方的 AsyncClient（由调用方负责关闭），
    否则每次请求新建一个，并随字节流一起关闭。
    """

    name = "completion"

    def __init__(self, cfg=settings, client: Optional[httpx.AsyncClient] = None):
        self._settings = cfg
        self._client = client

    async def send(self, history: Sequence[Message]) -> HttpByteStream:
        payload = {"messages": [m.to_payload() for m in history]}
        url = self._settings.completion_url
        owned = self._client is None
        client = self._client or httpx.AsyncClient(timeout=self._timeout(), trust_env=False)
        request = client.build_request(
            "POST",
            url,
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        try:
            resp = await client.send(request, stream=True)
        except httpx.RequestError as e:
            if owned:
                await client.aclose()
            logger.error("Completion request failed", extra={"extra": {"url": url, "error": str(e)}})
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__, url=url)

        if resp.status_code >= 400:
            try:
                body = (await resp.aread()).decode("utf-8", errors="replace")
            finally:
                await resp.aclose()
                if owned:
                    await client.aclose()
            logger.error(
                "Completion API error",
                extra={"extra": {"url": url, "status": resp.status_code, "body": body[:500]}},
            )
            raise ServerError(code="SERVER_ERROR", message=body, http_status=resp.status_code, url=url)

        return HttpByteStream(resp, client if owned else None)

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            self._settings.http_timeout,
            read=getattr(self._settings, "stream_read_timeout", None),
        )
