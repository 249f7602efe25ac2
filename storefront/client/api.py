"""HTTP client for the storefront REST API."""

import logging
import mimetypes
import os
from typing import Dict, List, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5001/api"


class ApiError(Exception):
    """A non-success response or a transport failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CatalogApi:
    def __init__(self, base_url: Optional[str] = None, session=None, timeout=None):
        self.base_url = (
            base_url or os.getenv("STOREFRONT_API_URL", DEFAULT_API_URL)
        ).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, fallback: str, token=None, **kwargs):
        headers = dict(kwargs.pop("headers", None) or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise ApiError(fallback) from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            message = data.get("message") if isinstance(data, dict) else None
            raise ApiError(message or fallback, response.status_code)

        return data

    def login(self, username: str, password: str) -> Dict:
        return self._request(
            "POST",
            "/auth/login",
            "Login failed. Please try again.",
            json={"username": username, "password": password},
        )

    def verify(self, token: str) -> Dict:
        return self._request("GET", "/auth/verify", "Session check failed", token=token)

    def list_products(self, token: Optional[str] = None) -> List[Dict]:
        return self._request(
            "GET", "/products", "Failed to load products", token=token
        )

    def get_product(self, product_id: str) -> Dict:
        return self._request(
            "GET", f"/products/{quote(product_id, safe='')}", "Failed to load product"
        )

    def search_products(self, query: str) -> List[Dict]:
        return self._request(
            "GET",
            f"/products/search/{quote(query, safe='')}",
            "Failed to search products",
        )

    def create_product(
        self, token: str, name: str, price, image_path: Optional[str] = None
    ) -> Dict:
        fallback = "Failed to add product. Please try again."
        form = {"name": name, "price": str(price)}
        if not image_path:
            return self._request("POST", "/products", fallback, token=token, data=form)

        mimetype = mimetypes.guess_type(image_path)[0] or "application/octet-stream"
        with open(image_path, "rb") as image_file:
            files = {"image": (os.path.basename(image_path), image_file, mimetype)}
            return self._request(
                "POST", "/products", fallback, token=token, data=form, files=files
            )

    def update_product(self, token: str, product_id: str, **fields) -> Dict:
        form = {
            key: str(value).lower() if isinstance(value, bool) else str(value)
            for key, value in fields.items()
            if value is not None
        }
        return self._request(
            "PUT",
            f"/products/{quote(product_id, safe='')}",
            "Failed to update product. Please try again.",
            token=token,
            data=form,
        )

    def toggle_product(self, token: str, product_id: str) -> Dict:
        return self._request(
            "PATCH",
            f"/products/{quote(product_id, safe='')}/toggle",
            "Failed to update product status. Please try again.",
            token=token,
        )

    def delete_product(self, token: str, product_id: str) -> Dict:
        return self._request(
            "DELETE",
            f"/products/{quote(product_id, safe='')}",
            "Failed to delete product. Please try again.",
            token=token,
        )
