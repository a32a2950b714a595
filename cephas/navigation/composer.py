"""
Route tree, sidebar and page-title composition for one role, plus
``navigate`` which runs a path through the gate and returns what to render.

The protected route tree and the sidebar filter roles differently:

* route tree: a child renders when its own roles, or its parent's if it
  declares none, contain the role. Parent roles are not checked again
  before descending, so a child may be reachable under a parent the role
  cannot see in the sidebar.
* sidebar: a top-level entry without roles never appears; children without
  roles are kept under a visible parent.
"""
from typing import Dict, List, Optional, Sequence, Tuple

import structlog
from pydantic import BaseModel

from ..auth.gate import (
    DASHBOARD_PATH,
    UNAUTHORIZED_PATH,
    GateDecision,
    GateState,
    Identity,
    authenticate,
    authorize,
    guard_public,
    is_public_path,
)
from ..schemas.enums import Role
from .manifest import DASHBOARD_COMPONENTS, ROUTES, RouteEntry

logger = structlog.get_logger(__name__)

DEFAULT_TITLE = "Dashboard"
NOT_FOUND_COMPONENT = "NotFound"
UNAUTHORIZED_COMPONENT = "Unauthorized"
PUBLIC_COMPONENTS = {
    "/login": "Login",
    "/forgot-password": "ForgotPassword",
    "/reset-password": "ResetPassword",
}


class ResolvedRoute(BaseModel):
    path: str
    relative_path: str
    component: Optional[str] = None
    roles: Optional[Tuple[Role, ...]] = None
    title: str = ""
    index: bool = False


class SidebarChild(BaseModel):
    path: str
    title: str


class SidebarLink(BaseModel):
    path: str
    title: str
    icon: Optional[str] = None
    children: List[SidebarChild] = []


class Navigation(BaseModel):
    path: str
    state: GateState
    redirect: Optional[str] = None
    component: Optional[str] = None
    params: Dict[str, str] = {}
    title: str = DEFAULT_TITLE

    @property
    def rendered(self) -> bool:
        return self.redirect is None


def _includes(roles: Optional[Sequence[Role]], role: Optional[Role]) -> bool:
    return roles is not None and role is not None and role in roles


def _child_relative_path(parent: RouteEntry, child: RouteEntry) -> str:
    prefix = parent.path + "/"
    if child.path.startswith(prefix):
        return child.path[len(prefix):]
    return child.path


def build_protected_routes(role, manifest: Sequence[RouteEntry] = ROUTES) -> List[ResolvedRoute]:
    """Flatten the authenticated part of the manifest into the routes rendered for ``role``.

    The dashboard is excluded; it is resolved per role by ``get_dashboard_component``.
    """
    current = Role.parse(role)
    resolved: List[ResolvedRoute] = []
    for entry in manifest:
        if not entry.auth or entry.path == DASHBOARD_PATH:
            continue
        if not entry.children:
            resolved.append(
                ResolvedRoute(
                    path=entry.path,
                    relative_path=entry.path,
                    component=entry.component,
                    roles=entry.roles,
                    title=entry.title,
                )
            )
            continue
        if entry.component:
            resolved.append(
                ResolvedRoute(
                    path=entry.path,
                    relative_path="",
                    component=entry.component,
                    roles=entry.roles,
                    title=entry.title,
                    index=True,
                )
            )
        for child in entry.children:
            effective = child.roles if child.roles is not None else entry.roles
            if not _includes(effective, current):
                continue
            resolved.append(
                ResolvedRoute(
                    path=child.path,
                    relative_path=_child_relative_path(entry, child),
                    component=child.component,
                    roles=effective,
                    title=child.title,
                )
            )
    return resolved


def get_routes_by_role(role, manifest: Sequence[RouteEntry] = ROUTES) -> List[RouteEntry]:
    current = Role.parse(role)
    return [entry for entry in manifest if _includes(entry.roles, current)]


def get_sidebar_links(role, manifest: Sequence[RouteEntry] = ROUTES) -> List[SidebarLink]:
    current = Role.parse(role)
    links = []
    for entry in manifest:
        if not entry.sidebar or not _includes(entry.roles, current):
            continue
        children = [
            SidebarChild(path=child.path, title=child.title)
            for child in entry.children
            if child.roles is None or current in child.roles
        ]
        links.append(SidebarLink(path=entry.path, title=entry.title, icon=entry.icon, children=children))
    return links


def resolve_page_title(path: str, role, manifest: Sequence[RouteEntry] = ROUTES) -> str:
    """Exact match over the visible links and their children, then the longest
    matching link prefix (never ``/``), then the default title."""
    links = get_sidebar_links(role, manifest)
    for link in links:
        if link.path == path:
            return link.title
        for child in link.children:
            if child.path == path:
                return child.title
    best: Optional[SidebarLink] = None
    for link in links:
        if link.path != "/" and path.startswith(link.path):
            if best is None or len(link.path) > len(best.path):
                best = link
    return best.title if best is not None else DEFAULT_TITLE


def get_dashboard_component(role) -> Optional[str]:
    """Dashboard component key for the role; None for a missing or unmapped role."""
    current = Role.parse(role)
    if current is None:
        return None
    return DASHBOARD_COMPONENTS.get(current)


def _segments(path: str) -> List[str]:
    return [part for part in path.split("/") if part]


def match_path(pattern: str, path: str) -> Optional[Dict[str, str]]:
    """Segment-wise match; ``:name`` captures one segment. None when no match."""
    expected = _segments(pattern)
    actual = _segments(path)
    if len(expected) != len(actual):
        return None
    params: Dict[str, str] = {}
    for want, got in zip(expected, actual):
        if want.startswith(":"):
            params[want[1:]] = got
        elif want != got:
            return None
    return params


def find_route(path: str, routes: Sequence[ResolvedRoute]) -> Optional[Tuple[ResolvedRoute, Dict[str, str]]]:
    """The matching route with the most literal segments, first declared on ties."""
    best = None
    best_score = -1
    for route in routes:
        params = match_path(route.path, path)
        if params is None:
            continue
        score = len(_segments(route.path)) - len(params)
        if score > best_score:
            best, best_score = (route, params), score
    return best


def _normalize(path: str) -> str:
    path = (path or "/").split("?", 1)[0].split("#", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def _redirect(path: str, decision: GateDecision) -> Navigation:
    return Navigation(path=path, state=decision.state, redirect=decision.redirect)


def navigate(path: str, identity: Identity, manifest: Sequence[RouteEntry] = ROUTES) -> Navigation:
    """Run one navigation through the gate.

    Returns either a redirect target or the component key to render, with the
    captured path parameters and the page title.
    """
    path = _normalize(path)
    role = identity.role

    if is_public_path(path):
        decision = guard_public(identity)
        if not decision.allowed:
            return _redirect(path, decision)
        component = PUBLIC_COMPONENTS.get(path, PUBLIC_COMPONENTS["/reset-password"])
        params = {}
        if path.startswith("/reset-password/"):
            params["token"] = path[len("/reset-password/"):]
        return Navigation(path=path, state=decision.state, component=component, params=params)

    # everything else sits behind authentication, including /unauthorized
    decision = authenticate(identity)
    if not decision.allowed:
        return _redirect(path, decision)
    signed_in = decision.state

    title = resolve_page_title(path, role, manifest)

    if path == "/":
        return Navigation(path=path, state=signed_in, redirect=DASHBOARD_PATH, title=title)

    if path == UNAUTHORIZED_PATH:
        return Navigation(path=path, state=signed_in, component=UNAUTHORIZED_COMPONENT, title=title)

    if path == DASHBOARD_PATH:
        component = get_dashboard_component(role)
        if component is None:
            state = GateState.authenticated_no_role if role is None else GateState.unauthorized
            logger.info("navigation_dashboard_unmapped", role=role)
            return Navigation(path=path, state=state, redirect=UNAUTHORIZED_PATH, title=title)
        return Navigation(path=path, state=GateState.authorized, component=component, title=title)

    match = find_route(path, build_protected_routes(role, manifest))
    if match is None:
        return Navigation(path=path, state=signed_in, component=NOT_FOUND_COMPONENT, title=title)

    route, params = match
    decision = authorize(identity, route.roles)
    if not decision.allowed:
        logger.info("navigation_denied", path=path, role=role, state=decision.state.value)
        return _redirect(path, decision)
    return Navigation(
        path=path,
        state=decision.state,
        component=route.component,
        params=params,
        title=title,
    )
