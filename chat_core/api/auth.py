"""管理后台的 Cookie 认证边界。

- 登录时校验配置中的静态用户名/密码，成功后下发 admin_auth Cookie。
- 访问 /admin 下的页面时检查 Cookie 是否存在，缺失则重定向到登录页；
  已登录再访问登录页则重定向回 /admin。
"""

import hmac
from typing import Mapping, Optional

from chat_core.config.settings import settings

AUTH_COOKIE = "admin_auth"
ADMIN_ROOT = "/admin"
LOGIN_PATH = "/admin/login"
COOKIE_MAX_AGE = 60 * 60 * 24


def check_credentials(username: str, password: str, cfg=settings) -> bool:
    expected_user = getattr(cfg, "admin_username", None)
    expected_pass = getattr(cfg, "admin_password", None)
    if not expected_user or not expected_pass:
        return False
    user_ok = hmac.compare_digest(username.encode("utf-8"), expected_user.encode("utf-8"))
    pass_ok = hmac.compare_digest(password.encode("utf-8"), expected_pass.encode("utf-8"))
    return user_ok and pass_ok


def login_cookie(cfg=settings) -> str:
    """返回 Set-Cookie 头的值。"""

    parts = [f"{AUTH_COOKIE}=true", "Path=/", "HttpOnly", f"Max-Age={COOKIE_MAX_AGE}"]
    if getattr(cfg, "environment", "development") == "production":
        parts.append("Secure")
    parts.append("SameSite=Strict")
    return "; ".join(parts)


def logout_cookie() -> str:
    return f"{AUTH_COOKIE}=; Path=/; Expires=Thu, 01 Jan 1970 00:00:01 GMT"


def route_guard(path: str, cookies: Mapping[str, str]) -> Optional[str]:
    """根据路径与 Cookie 决定是否重定向，返回目标路径或 None（放行）。"""

    authenticated = bool(cookies.get(AUTH_COOKIE))
    if path == LOGIN_PATH:
        return ADMIN_ROOT if authenticated else None
    if path.startswith(ADMIN_ROOT) and not authenticated:
        return LOGIN_PATH
    return None
