"""传输层抽象接口。

会话层不直接依赖 httpx，而是依赖此协议：

- CompletionTransport.send(history) 发出一次请求并返回原始字节流。
- ByteStream 是可异步迭代的字节分块序列，读完或出错后需要 aclose()。

测试中可以用任意实现了这两个协议的假对象替换真实客户端。
"""

from typing import AsyncIterator, Protocol, Sequence

from chat_core.domain.models import Message


class ByteStream(Protocol):
    """补全响应体的原始字节流。"""

    def __aiter__(self) -> AsyncIterator[bytes]:
        ...

    async def aclose(self) -> None:
        ...


class CompletionTransport(Protocol):
    """补全接口客户端协议。

    实现者需要提供：
    - name: 名称，用于日志。
    - send(history): 每次都携带完整历史，失败时抛出 NetworkError / ServerError。
    """

    name: str

    async def send(self, history: Sequence[Message]) -> ByteStream:
        ...
