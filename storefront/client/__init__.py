from storefront.client.api import ApiError, CatalogApi
from storefront.client.controller import StorefrontController
from storefront.client.state import AppState, View, reduce
from storefront.client.storage import TokenStore

__all__ = [
    "ApiError",
    "AppState",
    "CatalogApi",
    "StorefrontController",
    "TokenStore",
    "View",
    "reduce",
]
