"""进程内同步发布/订阅总线。

只用于装饰性副作用（眼睛闪烁、打字音效等），不承载任何会话数据。
总线本身不保存消息，只保存当前订阅者；组件在激活时 on()，
停用时 off()。实例通过构造参数注入给需要的组件。
"""

from typing import Callable, Dict, List

RESPONSE_STARTED = "responseStarted"
RESPONSE_FINISHED = "responseFinished"

Handler = Callable[[], None]


class SignalBus:
    """按事件名分组的订阅表。

    emit() 按注册顺序同步调用处理函数，处理函数抛出的异常原样向上传播。
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = {}

    def on(self, name: str, handler: Handler) -> None:
        handlers = self._handlers.setdefault(name, [])
        if handler not in handlers:
            handlers.append(handler)

    def off(self, name: str, handler: Handler) -> None:
        handlers = self._handlers.get(name)
        if not handlers or handler not in handlers:
            return
        handlers.remove(handler)
        if not handlers:
            del self._handlers[name]

    def emit(self, name: str) -> None:
        # 拷贝一份，允许处理函数在回调中注销自身
        for handler in list(self._handlers.get(name, ())):
            handler()

    def listeners(self, name: str) -> List[Handler]:
        return list(self._handlers.get(name, ()))
