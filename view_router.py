"""
视图路由模块 - 根据会话状态决定当前身份可以看到哪个页面

所有页面的访问控制集中在一张决策表里，每次导航以及会话变化时重新计算。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Route(str, Enum):
    PUBLIC = "public"
    STUDENT_AUTH = "studentAuth"
    ADMIN_AUTH = "adminAuth"
    STUDENT_AREA = "studentArea"
    ADMIN_AREA = "adminArea"


class Action(str, Enum):
    RENDER = "render"
    REDIRECT = "redirect"
    PLACEHOLDER = "placeholder"


ROUTE_PATHS = {
    Route.PUBLIC: "/",
    Route.STUDENT_AUTH: "/login",
    Route.ADMIN_AUTH: "/admin-login",
    Route.STUDENT_AREA: "/dashboard",
    Route.ADMIN_AREA: "/admin",
}


@dataclass(frozen=True)
class RouteDecision:
    action: Action
    target: Route

    @property
    def path(self) -> str:
        return ROUTE_PATHS[self.target]


# (已登录, 管理员) -> {请求的页面: 实际页面}，与请求页面相同即为直接渲染
_ANONYMOUS = {
    Route.STUDENT_AREA: Route.STUDENT_AUTH,
    Route.ADMIN_AREA: Route.ADMIN_AUTH,
    Route.STUDENT_AUTH: Route.STUDENT_AUTH,
    Route.ADMIN_AUTH: Route.ADMIN_AUTH,
}
_STUDENT = {
    Route.STUDENT_AREA: Route.STUDENT_AREA,
    Route.ADMIN_AREA: Route.STUDENT_AREA,
    Route.STUDENT_AUTH: Route.STUDENT_AREA,
    # 学生访问管理员登录页时停留在登录页
    Route.ADMIN_AUTH: Route.ADMIN_AUTH,
}
_ADMIN = {
    Route.STUDENT_AREA: Route.ADMIN_AREA,
    Route.ADMIN_AREA: Route.ADMIN_AREA,
    Route.STUDENT_AUTH: Route.ADMIN_AREA,
    Route.ADMIN_AUTH: Route.ADMIN_AREA,
}


def decide_for(has_session: bool, is_admin: bool, route) -> RouteDecision:
    """纯函数形式的决策表"""
    route = Route(route)
    if route == Route.PUBLIC:
        return RouteDecision(Action.RENDER, route)

    if not has_session:
        table = _ANONYMOUS
    elif is_admin:
        table = _ADMIN
    else:
        table = _STUDENT

    target = table[route]
    if target == route:
        return RouteDecision(Action.RENDER, route)
    return RouteDecision(Action.REDIRECT, target)


def decide(session, route) -> RouteDecision:
    """会话仍在加载时返回占位页，不做跳转"""
    if session.is_loading:
        return RouteDecision(Action.PLACEHOLDER, Route(route))
    return decide_for(session.has_session, session.is_admin, route)


def route_for_path(path: Optional[str]) -> Route:
    """根据 URL 路径找到页面类别，未知路径视为首页"""
    path = (path or "/").rstrip("/") or "/"
    for route, route_path in ROUTE_PATHS.items():
        if route_path == path:
            return route
    return Route.PUBLIC


def navigate(session, route, max_hops: int = 3) -> RouteDecision:
    """沿着重定向走到最终可渲染的页面"""
    decision = decide(session, route)
    hops = 0
    while decision.action == Action.REDIRECT and hops < max_hops:
        decision = decide(session, decision.target)
        hops += 1
    return decision
