"""Client application state and the reducer that is its only writer."""

import enum
from dataclasses import dataclass, replace
from typing import Dict, Optional, Sequence, Tuple


class View(enum.Enum):
    HOME = "home"
    LOGIN = "login"
    ADMIN = "admin"


@dataclass(frozen=True)
class AppState:
    view: View = View.HOME
    current_user: Optional[Dict] = None
    products: Tuple[Dict, ...] = ()
    visible_products: Tuple[Dict, ...] = ()
    search_query: str = ""
    error: Optional[str] = None
    notice: Optional[str] = None


# --- Actions ---


@dataclass(frozen=True)
class Navigate:
    view: View


@dataclass(frozen=True)
class ProductsLoaded:
    products: Sequence[Dict]


@dataclass(frozen=True)
class ProductsFailed:
    message: str


@dataclass(frozen=True)
class SessionRestored:
    user: Dict


@dataclass(frozen=True)
class SignedIn:
    user: Dict


@dataclass(frozen=True)
class SignedOut:
    pass


@dataclass(frozen=True)
class Searched:
    query: str


@dataclass(frozen=True)
class Notified:
    message: str


def filter_products(products: Sequence[Dict], query: str) -> Tuple[Dict, ...]:
    term = (query or "").lower()
    if not term:
        return tuple(products)
    return tuple(
        product
        for product in products
        if term in str(product.get("name", "")).lower()
    )


def reduce(state: AppState, action) -> AppState:
    if isinstance(action, Navigate):
        view = action.view
        if view is View.ADMIN and state.current_user is None:
            view = View.LOGIN
        return replace(state, view=view, notice=None)

    if isinstance(action, ProductsLoaded):
        loaded = tuple(action.products)
        return replace(
            state,
            products=loaded,
            visible_products=loaded,
            search_query="",
            error=None,
        )

    if isinstance(action, ProductsFailed):
        return replace(state, error=action.message)

    if isinstance(action, SessionRestored):
        return replace(state, current_user=action.user)

    if isinstance(action, SignedIn):
        return replace(state, current_user=action.user, view=View.ADMIN, notice=None)

    if isinstance(action, SignedOut):
        return replace(state, current_user=None, view=View.HOME, notice=None)

    if isinstance(action, Searched):
        return replace(
            state,
            search_query=action.query,
            visible_products=filter_products(state.products, action.query),
        )

    if isinstance(action, Notified):
        return replace(state, notice=action.message)

    raise TypeError(f"Unknown action: {action!r}")
