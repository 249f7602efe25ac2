import logging
from typing import Callable, Optional

from storefront.client.api import ApiError, CatalogApi
from storefront.client.render import render
from storefront.client.state import (
    AppState,
    Navigate,
    Notified,
    ProductsFailed,
    ProductsLoaded,
    Searched,
    SessionRestored,
    SignedIn,
    SignedOut,
    View,
    reduce,
)
from storefront.client.storage import TokenStore

logger = logging.getLogger(__name__)


def _log_alert(message: str) -> None:
    logger.warning(message)


class StorefrontController:
    """Drives the storefront API from user actions.

    Every state change goes through :meth:`dispatch`; each user action makes
    at most one mutating API call and waits for it. Failed calls raise one
    alert and leave the state as it was.
    """

    def __init__(
        self,
        api: Optional[CatalogApi] = None,
        token_store: Optional[TokenStore] = None,
        alert: Optional[Callable[[str], None]] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        on_render: Optional[Callable[[str], None]] = None,
    ):
        self.api = api or CatalogApi()
        self.token_store = token_store or TokenStore()
        self.alert = alert or _log_alert
        self.confirm = confirm or (lambda message: True)
        self.on_render = on_render
        self.state = AppState()

    def dispatch(self, action) -> AppState:
        self.state = reduce(self.state, action)
        if self.on_render:
            self.on_render(render(self.state))
        return self.state

    # --- Lifecycle ---

    def start(self) -> AppState:
        self.load_products()
        self.restore_session()
        return self.state

    def restore_session(self) -> None:
        token = self.token_store.load()
        if not token:
            return

        try:
            data = self.api.verify(token)
        except ApiError as exc:
            logger.info("Discarding stored session: %s", exc.message)
            self.token_store.clear()
            return

        if isinstance(data, dict) and data.get("valid"):
            self.dispatch(SessionRestored(data.get("user") or {}))
        else:
            self.token_store.clear()

    def show(self, view: View) -> AppState:
        self.dispatch(Navigate(view))
        if self.state.view is View.HOME:
            self.load_products()
        elif self.state.view is View.ADMIN:
            self.load_admin_products()
        return self.state

    # --- Authentication ---

    def login(self, username: str, password: str) -> bool:
        try:
            data = self.api.login(username, password)
        except ApiError as exc:
            self.alert(exc.message)
            return False

        self.token_store.save(data["token"])
        self.dispatch(SignedIn(data.get("user") or {}))
        self.load_admin_products()
        return True

    def logout(self) -> AppState:
        self.token_store.clear()
        self.dispatch(SignedOut())
        self.load_products()
        return self.state

    # --- Products ---

    def load_products(self) -> None:
        try:
            products = self.api.list_products()
        except ApiError as exc:
            logger.error("Load products error: %s", exc.message)
            self.dispatch(ProductsFailed("Failed to load products"))
            return
        self.dispatch(ProductsLoaded(products or []))

    def load_admin_products(self) -> None:
        try:
            products = self.api.list_products(token=self.token_store.load())
        except ApiError as exc:
            logger.error("Load admin products error: %s", exc.message)
            self.dispatch(ProductsFailed("Failed to load products"))
            return
        self.dispatch(ProductsLoaded(products or []))

    def search(self, query: str) -> AppState:
        return self.dispatch(Searched(query))

    def add_product(self, name: str, price, image_path: Optional[str] = None) -> bool:
        try:
            self.api.create_product(
                self.token_store.load(), name, price, image_path=image_path
            )
        except ApiError as exc:
            self.alert(exc.message)
            return False
        except OSError as exc:
            logger.error("Unable to read %s: %s", image_path, exc)
            self.alert("Failed to add product. Please try again.")
            return False

        self.load_admin_products()
        self.dispatch(Notified("Product added successfully!"))
        return True

    def toggle_product(self, product_id: str) -> bool:
        try:
            self.api.toggle_product(self.token_store.load(), product_id)
        except ApiError as exc:
            self.alert(exc.message)
            return False

        self.load_admin_products()
        self.dispatch(Notified("Product status updated!"))
        return True

    def delete_product(self, product_id: str) -> bool:
        if not self.confirm("Are you sure you want to delete this product?"):
            return False

        try:
            self.api.delete_product(self.token_store.load(), product_id)
        except ApiError as exc:
            self.alert(exc.message)
            return False

        self.load_admin_products()
        self.dispatch(Notified("Product deleted successfully!"))
        return True
