"""Common API dependencies."""

from typing import Annotated

from fastapi import Depends, Query, Request

from wahoo.context import AppContext
from wahoo.db.store import Store
from wahoo.schemas import DEFAULT_LIMIT, MAX_LIMIT
from wahoo.services.session_manager import SessionManager


def get_context(request: Request) -> AppContext:
    """Dependency for the application context created at startup."""
    return request.app.state.context


def get_store(context: Annotated[AppContext, Depends(get_context)]) -> Store:
    return context.store


def get_session(context: Annotated[AppContext, Depends(get_context)]) -> SessionManager:
    return context.session


def parse_limit(limit: Annotated[str | None, Query()] = None) -> int:
    """Lenient ``limit`` parsing: bad or missing values fall back to the default.

    Values below 1 use the default, values above the maximum are clamped.
    """
    try:
        value = int(limit) if limit is not None else DEFAULT_LIMIT
    except ValueError:
        return DEFAULT_LIMIT
    if value < 1:
        return DEFAULT_LIMIT
    return min(value, MAX_LIMIT)


# Type aliases for cleaner annotations
StoreDep = Annotated[Store, Depends(get_store)]
SessionDep = Annotated[SessionManager, Depends(get_session)]
Limit = Annotated[int, Depends(parse_limit)]
