"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在会话层或 UI 层做统一捕获与用户提示。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "NETWORK_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 url、line 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如请求无法发出、连接中途断开、读取超时等。"""


class ServerError(BusinessError):
    """补全服务或配置服务返回非 2xx 状态时抛出，message 为响应正文。"""


class DecodeError(BusinessError):
    """单条 `data: ` 片段无法解析为 JSON，由解码器就地恢复。"""


class ConfigurationError(BusinessError):
    """提示词配置获取失败或数据缺失，由初始化流程回退到默认值。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""
