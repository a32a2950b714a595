"""
Startup data load and session wiring for the client runtime.

``bootstrap`` fetches the reference collections concurrently and waits for
all of them before reporting. A collection that loaded is replaced; one that
failed keeps whatever it held before (empty on the first load) and carries
the error message.
"""
import asyncio
from typing import Dict, Optional, Sequence

import structlog
from pydantic import BaseModel, ValidationError

from ..auth.session import CredentialStore
from ..schemas.records import User
from ..state import AppState
from .api_client import ApiError, CephasClient

logger = structlog.get_logger(__name__)

REFERENCE_COLLECTIONS = ("buildings", "materials", "service_installers", "orders")


class BootstrapResult(BaseModel):
    loaded: Sequence[str] = ()
    failures: Dict[str, str] = {}

    @property
    def ok(self) -> bool:
        return not self.failures


def _ingest(state: AppState, name: str, payload) -> Optional[str]:
    """Store a fetched list; returns an error message instead when it does not validate."""
    if payload is not None and not isinstance(payload, list):
        logger.warning("bootstrap_payload_invalid", collection=name, got=type(payload).__name__)
        return f"Malformed {name} payload: expected a list"
    try:
        state.receive(name, payload or [])
    except ValidationError as e:
        logger.warning("bootstrap_payload_invalid", collection=name, errors=e.errors(include_url=False))
        return f"Malformed {name} payload: {e.error_count()} invalid field(s)"
    return None


async def bootstrap(
    client: CephasClient,
    state: AppState,
    collections: Sequence[str] = REFERENCE_COLLECTIONS,
) -> BootstrapResult:
    for name in collections:
        state.begin_loading(name)
    results = await asyncio.gather(*(client.list(name) for name in collections), return_exceptions=True)

    loaded = []
    failures: Dict[str, str] = {}
    for name, result in zip(collections, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            message = result.message if isinstance(result, ApiError) else str(result)
            state.fail(name, message, keep_items=True)
            failures[name] = message
            continue
        message = _ingest(state, name, result)
        if message is not None:
            state.fail(name, message, keep_items=True)
            failures[name] = message
            continue
        loaded.append(name)

    if failures:
        logger.warning("bootstrap_incomplete", failed=sorted(failures), loaded=loaded)
    else:
        logger.info("bootstrap_complete", loaded=loaded)
    return BootstrapResult(loaded=loaded, failures=failures)


def restore_session(state: AppState, store: CredentialStore) -> bool:
    """Load the stored credential into ``state``; True when a token was found."""
    state.auth = store.load()
    return bool(state.auth.token)


async def sign_in(
    client: CephasClient,
    state: AppState,
    store: CredentialStore,
    identifier: str,
    password: str,
) -> Optional[User]:
    state.auth.loading = True
    state.auth.error = None
    try:
        data = await client.login(identifier, password)
    except ApiError as e:
        state.auth.loading = False
        state.auth.error = e.message
        logger.info("sign_in_failed", identifier=identifier, status=e.status_code)
        return None
    token = data.get("token") if isinstance(data, dict) else None
    if not token:
        state.auth.loading = False
        state.auth.error = "Login response carried no token"
        return None
    user = User.model_validate(data.get("user") or {})
    state.auth = store.save(token, user)
    return user


def sign_out(state: AppState, store: CredentialStore) -> None:
    store.clear()
    state.reset()
