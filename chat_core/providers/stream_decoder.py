"""SSE 风格响应流解码器。

把原始字节分块转换为"累计文本快照"序列：

1. 分块按到达顺序读取，直到流结束。
2. 使用增量 UTF-8 解码器，跨分块的多字节字符不会被截断。
3. 按换行切分，不完整的尾行留到下一个分块；只有以 `data: ` 开头的行有意义，
   空行（keep-alive）和其他控制行一律忽略。
4. `data: ` 之后的内容按 JSON 解析；解析失败记录日志并跳过，不会中断整个流。
5. 对象带有字符串 content 字段时追加到累计文本，并产出完整的累计文本（而非增量），
   上层据此实现"打字机"效果。
"""

import codecs
import json
from typing import AsyncIterable, AsyncIterator, List, Optional

from chat_core.domain.exceptions import DecodeError
from chat_core.infrastructure.logging.logger import logger

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def parse_data_line(line: str) -> Optional[str]:
    """解析一行文本，返回其中的 content 片段。

    非 `data: ` 行、没有 content 字段的对象返回 None；
    JSON 无法解析时抛出 DecodeError。
    """

    if not line.startswith(DATA_PREFIX):
        return None
    data_str = line[len(DATA_PREFIX):]
    if data_str.strip() == DONE_SENTINEL:
        return None
    try:
        payload = json.loads(data_str)
    except json.JSONDecodeError as e:
        raise DecodeError(code="MALFORMED_FRAGMENT", message=str(e), line=line)
    if not isinstance(payload, dict):
        return None
    content = payload.get("content")
    if not isinstance(content, str):
        return None
    return content


class StreamDecoder:
    """有状态的增量解码器，一个实例只服务一次响应。"""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""
        self._text = ""
        self.fragments = 0
        self.skipped = 0

    @property
    def text(self) -> str:
        return self._text

    def feed(self, chunk: bytes) -> List[str]:
        """喂入一个字节分块，返回本次新增的累计快照列表。"""

        self._pending += self._decoder.decode(chunk)
        *lines, self._pending = self._pending.split("\n")
        return self._consume(lines)

    def finish(self) -> List[str]:
        """流结束：刷新解码器与尾行。"""

        self._pending += self._decoder.decode(b"", final=True)
        tail, self._pending = self._pending, ""
        return self._consume([tail] if tail else [])

    def _consume(self, lines: List[str]) -> List[str]:
        snapshots: List[str] = []
        for raw in lines:
            line = raw[:-1] if raw.endswith("\r") else raw
            try:
                content = parse_data_line(line)
            except DecodeError as e:
                self.skipped += 1
                logger.warning(
                    "Skipped malformed stream fragment",
                    extra={"extra": {"line": line[:200], "error": e.message}},
                )
                continue
            if content is None:
                continue
            self._text += content
            self.fragments += 1
            snapshots.append(self._text)
        return snapshots


async def iter_snapshots(
    stream: AsyncIterable[bytes],
    decoder: Optional[StreamDecoder] = None,
) -> AsyncIterator[str]:
    """按到达顺序产出累计文本快照，流结束即终止。"""

    decoder = decoder or StreamDecoder()
    async for chunk in stream:
        for snapshot in decoder.feed(chunk):
            yield snapshot
    for snapshot in decoder.finish():
        yield snapshot
