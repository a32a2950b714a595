from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials

from ..auth.gate import Identity
from ..auth.security import get_current_user, http_bearer
from ..models.models import User
from ..navigation.composer import build_protected_routes, get_sidebar_links, navigate
from ..schemas.enums import Role
from ..services.envelope import ok

router = APIRouter(prefix="/navigation", tags=["navigation"])


@router.get("/sidebar")
def sidebar(user: User = Depends(get_current_user)):
    return ok(get_sidebar_links(user.role))


@router.get("/routes")
def protected_routes(user: User = Depends(get_current_user)):
    return ok(build_protected_routes(user.role))


@router.get("/resolve")
def resolve(
    path: str,
    user: User = Depends(get_current_user),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
):
    identity = Identity(token=creds.credentials if creds else None, role=Role.parse(user.role))
    return ok(navigate(path, identity))
