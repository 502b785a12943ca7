"""统一的对话与配置数据模型。

本模块定义了会话层、传输层与边界服务之间共享的标准数据结构：

- Message: 一条对话消息（system/user/assistant），按顺序原样回放给补全接口。
- PromptConfiguration: 启动时从配置服务获取的系统提示词与开场白。
- StoryPrompt / MediaItem: 管理后台与装饰性 UI 使用的边界记录。

服务端 JSON 使用 camelCase 字段名，转换统一在 from_payload / to_payload 中完成。
"""

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from chat_core.domain.exceptions import ConfigurationError


# 消息角色类型（与补全接口的 role 字段对应）
Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Message:
    """一条对话消息。

    一旦写入会话日志即不可变；仍在流式生成中的助手回复只存在于
    ConversationStore 的缓冲区里，完成后才会构造为 Message。
    """

    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class PromptConfiguration:
    """当前生效的系统提示词配置。

    - system_message: 作为会话首条 system 消息的内容。
    - greeting: 可选的开场白，非空时原样作为欢迎消息。
    - is_active: 服务端标记的启用状态，仅透传。
    """

    system_message: str
    greeting: Optional[str] = None
    is_active: bool = True
    id: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Any) -> "PromptConfiguration":
        if not isinstance(data, dict):
            raise ConfigurationError(code="PROMPT_MALFORMED", message="Prompt record is not an object")
        system_message = data.get("systemMessage")
        if not isinstance(system_message, str) or not system_message.strip():
            raise ConfigurationError(code="PROMPT_MISSING", message="Prompt record has no systemMessage")
        greeting = data.get("greeting")
        return cls(
            system_message=system_message,
            greeting=greeting if isinstance(greeting, str) else None,
            is_active=bool(data.get("isActive", True)),
            id=data.get("id"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "systemMessage": self.system_message,
            "greeting": self.greeting,
            "isActive": self.is_active,
        }


@dataclass
class StoryPrompt:
    """故事提示词资源（管理后台 CRUD）。"""

    name: str
    description: str
    system_message: str
    user_prompt: str
    is_active: bool = False
    id: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "StoryPrompt":
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            system_message=data.get("systemMessage") or "",
            user_prompt=data.get("userPrompt") or "",
            is_active=bool(data.get("isActive", False)),
            id=data.get("id"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "systemMessage": self.system_message,
            "userPrompt": self.user_prompt,
            "isActive": self.is_active,
        }


@dataclass
class MediaItem:
    """媒体流条目，仅供装饰性 UI 使用。"""

    media_url: str
    media_id: str
    content: str
    caption: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "MediaItem":
        return cls(
            media_url=data.get("mediaUrl") or "",
            media_id=str(data.get("mediaId") or ""),
            content=data.get("content") or "",
            caption=data.get("caption") or "",
        )
