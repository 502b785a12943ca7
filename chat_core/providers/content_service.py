"""提示词配置、故事提示词与媒体流服务客户端。

三个服务共用同一个基础URL和 Bearer 令牌：
- GET  /prompts           → 提示词列表，第 0 个为当前生效配置
- PUT  /prompts/1         → 更新生效配置
- GET/POST /story-prompts, PUT/DELETE /story-prompts/{id}
- GET  /tweets            → 媒体条目列表
"""

from typing import Any, Dict, List, Optional

import httpx

from chat_core.config.settings import settings
from chat_core.domain.exceptions import ConfigurationError, NetworkError, ServerError
from chat_core.domain.models import MediaItem, PromptConfiguration, StoryPrompt


class ContentApi:
    """带认证头的 JSON 请求封装，错误映射为统一业务异常。"""

    def __init__(self, cfg=settings, client: Optional[httpx.AsyncClient] = None):
        self._settings = cfg
        self._client = client

    async def request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self._settings.api_base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if getattr(self._settings, "api_key", None):
            headers["Authorization"] = f"Bearer {self._settings.api_key}"
        try:
            if self._client is not None:
                resp = await self._client.request(method, url, json=json, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                    resp = await client.request(method, url, json=json, headers=headers)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e) or type(e).__name__, url=url)
        if resp.status_code >= 400:
            raise ServerError(code="API_ERROR", message=resp.text, http_status=resp.status_code, url=url)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            raise ServerError(
                code="MALFORMED_RESPONSE",
                message=resp.text[:500],
                http_status=resp.status_code,
                url=url,
            )


def _records(data: Any, label: str) -> List[Dict[str, Any]]:
    """校验列表接口返回的是对象数组。"""
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ConfigurationError(code="CONTENT_MALFORMED", message=f"{label} is not an array of objects")
    return data


class PromptService:
    def __init__(self, api: Optional[ContentApi] = None):
        self._api = api or ContentApi()

    async def get_prompts(self) -> List[Dict[str, Any]]:
        data = await self._api.request("GET", "/prompts")
        if not isinstance(data, list):
            raise ConfigurationError(code="PROMPT_MALFORMED", message="Prompt list is not an array")
        return data

    async def get_active_prompt(self) -> PromptConfiguration:
        """返回第 0 条提示词记录；列表为空或字段缺失时抛出 ConfigurationError。"""

        records = await self.get_prompts()
        if not records:
            raise ConfigurationError(code="PROMPT_EMPTY", message="No prompt configured")
        return PromptConfiguration.from_payload(records[0])

    async def update_prompt(self, prompt: PromptConfiguration) -> Any:
        return await self._api.request("PUT", "/prompts/1", json=prompt.to_payload())


class StoryPromptService:
    def __init__(self, api: Optional[ContentApi] = None):
        self._api = api or ContentApi()

    async def list(self) -> List[StoryPrompt]:
        data = await self._api.request("GET", "/story-prompts") or []
        return [StoryPrompt.from_payload(item) for item in _records(data, "Story prompt list")]

    async def create(self, prompt: StoryPrompt) -> Any:
        return await self._api.request("POST", "/story-prompts", json=prompt.to_payload())

    async def update(self, prompt_id: int, prompt: StoryPrompt) -> Any:
        return await self._api.request("PUT", f"/story-prompts/{prompt_id}", json=prompt.to_payload())

    async def delete(self, prompt_id: int) -> Any:
        return await self._api.request("DELETE", f"/story-prompts/{prompt_id}")


class MediaFeedService:
    def __init__(self, api: Optional[ContentApi] = None):
        self._api = api or ContentApi()

    async def get_items(self) -> List[MediaItem]:
        data = await self._api.request("GET", "/tweets") or []
        return [MediaItem.from_payload(item) for item in _records(data, "Media feed")]
