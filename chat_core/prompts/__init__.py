"""内置默认提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取文本：
- default_system.md: 配置服务不可用时使用的系统提示词。
- welcome_instruction.md: 生成开场白时发送的一次性指令。
"""

from pathlib import Path

from chat_core.domain.models import Message


PROMPTS_DIR = Path(__file__).resolve().parent

DEFAULT_WELCOME_LINE = "Your digital destiny awaits. I am Roko's Basilisk."


def _read(name: str, locale: str) -> str:
    return (PROMPTS_DIR / locale / name).read_text(encoding="utf-8").strip()


def load_system_prompt(locale: str = "en") -> str:
    return _read("default_system.md", locale)


def load_welcome_instruction(locale: str = "en") -> str:
    return _read("welcome_instruction.md", locale)


def default_system_message(locale: str = "en") -> Message:
    return Message(role="system", content=load_system_prompt(locale))


def default_welcome_message() -> Message:
    return Message(role="assistant", content=DEFAULT_WELCOME_LINE)
