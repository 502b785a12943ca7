"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHAT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- 补全接口 ----
    completion_url: str = Field(
        default="http://localhost:3000/api/createMessage",
        description="流式补全代理路由，POST {messages: [...]}",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="连接/写入超时时间（秒）")
    stream_read_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="流式读取单个分块的超时（秒），为空表示不限制",
    )
    typewriter_delay: float = Field(
        default=0.0,
        ge=0.0,
        le=5.0,
        description="每个片段写入缓冲区后的停顿（秒），用于打字机效果",
    )

    # ---- 配置服务 / 内容服务 ----
    api_base_url: str = Field(default="http://localhost:8000", description="提示词与内容服务基础URL")
    api_key: Optional[str] = Field(default=None, description="内容服务 Bearer 令牌")
    prompt_locale: str = Field(default="en", description="内置默认提示词语言目录")

    # ---- 管理后台 ----
    admin_username: Optional[str] = Field(default=None, description="管理员用户名")
    admin_password: Optional[str] = Field(default=None, description="管理员密码")
    environment: str = Field(default="development", description="运行环境，production 时 Cookie 带 Secure")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("completion_url", "api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
