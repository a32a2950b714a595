"""
Application state: one normalized collection per entity plus the auth session
and the notification feed.

The state object is passed explicitly to selectors and services. Reads go
through the selector layer; writes go through the ``AppState`` methods below
so each collection is only touched by one fetch/update at a time.
"""
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from .schemas.records import (
    Building,
    Invoice,
    Material,
    Notification,
    Order,
    Project,
    ServiceInstaller,
    Splitter,
    Task,
    User,
)

T = TypeVar("T")


class Collection(BaseModel, Generic[T]):
    items: List[T] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None
    total_count: int = 0


class AuthSession(BaseModel):
    token: Optional[str] = None
    user: Optional[User] = None
    loading: bool = False
    error: Optional[str] = None


# collection name -> record type, used when ingesting wire payloads
RECORD_TYPES: Dict[str, type] = {
    "orders": Order,
    "activations": Order,
    "buildings": Building,
    "materials": Material,
    "splitters": Splitter,
    "service_installers": ServiceInstaller,
    "tasks": Task,
    "projects": Project,
    "users": User,
    "invoices": Invoice,
}


class AppState(BaseModel):
    orders: Optional[Collection[Order]] = Field(default_factory=Collection)
    activations: Optional[Collection[Order]] = Field(default_factory=Collection)
    buildings: Optional[Collection[Building]] = Field(default_factory=Collection)
    materials: Optional[Collection[Material]] = Field(default_factory=Collection)
    splitters: Optional[Collection[Splitter]] = Field(default_factory=Collection)
    service_installers: Optional[Collection[ServiceInstaller]] = Field(default_factory=Collection)
    tasks: Optional[Collection[Task]] = Field(default_factory=Collection)
    projects: Optional[Collection[Project]] = Field(default_factory=Collection)
    users: Optional[Collection[User]] = Field(default_factory=Collection)
    invoices: Optional[Collection[Invoice]] = Field(default_factory=Collection)
    auth: AuthSession = Field(default_factory=AuthSession)
    notifications: List[Notification] = Field(default_factory=list)

    def collection(self, name: str) -> Collection:
        if name not in RECORD_TYPES:
            raise KeyError(f"Unknown collection: {name}")
        current = getattr(self, name)
        if current is None:
            current = Collection()
            setattr(self, name, current)
        return current

    def begin_loading(self, name: str) -> None:
        coll = self.collection(name)
        coll.loading = True
        coll.error = None

    def receive(self, name: str, items: List[Any], total_count: Optional[int] = None) -> None:
        record_type = RECORD_TYPES[name]
        coll = self.collection(name)
        coll.items = [i if isinstance(i, record_type) else record_type.model_validate(i) for i in items]
        coll.total_count = len(coll.items) if total_count is None else total_count
        coll.loading = False
        coll.error = None

    def fail(self, name: str, error: str, keep_items: bool = True) -> None:
        """Record a failed fetch. Last-known-good items stay unless ``keep_items`` is False."""
        coll = self.collection(name)
        coll.loading = False
        coll.error = error
        if not keep_items:
            coll.items = []
            coll.total_count = 0

    def reset(self) -> None:
        for name in RECORD_TYPES:
            setattr(self, name, Collection())
        self.auth = AuthSession()
        self.notifications = []


def build_state(**collections: List[Any]) -> AppState:
    state = AppState()
    for name, items in collections.items():
        state.receive(name, items)
    return state
