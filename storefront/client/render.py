"""Pure HTML projection of the client state."""

from typing import Dict, Sequence

from markupsafe import escape

from storefront.client.state import AppState, View

PLACEHOLDER_ICON = "\U0001F4E6"


def format_price(value) -> str:
    try:
        price_value = float(value)
    except (TypeError, ValueError):
        return str(value)
    return ("%.2f" % price_value).rstrip("0").rstrip(".")


def render_image(product: Dict) -> str:
    if product.get("image"):
        return (
            f'<img src="{escape(product["image"])}" '
            f'alt="{escape(product.get("name", ""))}">'
        )
    return f'<div class="default-product-icon">{PLACEHOLDER_ICON}</div>'


def render_badge(product: Dict) -> str:
    if product.get("available", True):
        return '<button class="status-btn available">Available</button>'
    return '<button class="status-btn sold-out">Sold Out</button>'


def render_card(product: Dict) -> str:
    return (
        '<div class="product-card">'
        f'<div class="product-image">{render_image(product)}</div>'
        f'<div class="product-name">{escape(product.get("name", ""))}</div>'
        f'<div class="product-price">₹ {escape(format_price(product.get("price")))}</div>'
        f"{render_badge(product)}"
        "</div>"
    )


def render_admin_card(product: Dict) -> str:
    product_id = escape(product.get("id", ""))
    if product.get("available", True):
        toggle = (
            f'<button class="toggle-btn mark-sold-out" data-product-id="{product_id}">'
            "Mark as sold out</button>"
        )
    else:
        toggle = (
            f'<button class="toggle-btn mark-available" data-product-id="{product_id}">'
            "Mark as available</button>"
        )

    return (
        '<div class="admin-product-card">'
        f'<div class="product-image">{render_image(product)}</div>'
        f'<div class="product-name">{escape(product.get("name", ""))}</div>'
        f'<div class="product-price">₹ {escape(format_price(product.get("price")))}</div>'
        f"{render_badge(product)}"
        '<div class="admin-controls">'
        f"{toggle}"
        f'<button class="delete-btn" data-product-id="{product_id}">DELETE</button>'
        "</div>"
        "</div>"
    )


def render_grid(products: Sequence[Dict], error=None, admin: bool = False) -> str:
    grid_id = "adminProductsGrid" if admin else "productsGrid"
    if error:
        body = f'<div class="error">{escape(error)}</div>'
    elif not products:
        body = '<div class="loading">No products found</div>'
    else:
        card = render_admin_card if admin else render_card
        body = "".join(card(product) for product in products)
    return f'<div id="{grid_id}" class="products-grid">{body}</div>'


def render_home(state: AppState) -> str:
    return (
        '<section id="homePage" class="page active">'
        '<div class="search-bar">'
        f'<input id="searchInput" value="{escape(state.search_query)}">'
        '<button id="searchBtn">Search</button>'
        "</div>"
        f"{render_grid(state.visible_products, state.error)}"
        "</section>"
    )


def render_login(state: AppState) -> str:
    return (
        '<section id="loginPage" class="page active">'
        '<form id="loginForm">'
        '<input id="username" name="username" required>'
        '<input id="password" name="password" type="password" required>'
        '<button type="submit">Login</button>'
        "</form>"
        '<button id="backToHomeBtn">Back to home</button>'
        "</section>"
    )


def render_admin(state: AppState) -> str:
    notice = ""
    if state.notice:
        notice = f'<div class="success">{escape(state.notice)}</div>'
    username = (state.current_user or {}).get("username", "")

    return (
        '<section id="adminPage" class="page active">'
        '<div class="admin-container">'
        f"{notice}"
        f'<div class="admin-user">{escape(username)}</div>'
        '<form id="addProductForm" enctype="multipart/form-data">'
        '<input id="productName" name="name" required>'
        '<input id="productPrice" name="price" type="number" min="0" step="0.01" required>'
        '<input id="productImage" name="image" type="file" accept="image/*">'
        '<button type="submit">Add product</button>'
        "</form>"
        f"{render_grid(state.products, state.error, admin=True)}"
        '<button id="logoutBtn">Logout</button>'
        "</div>"
        "</section>"
    )


VIEW_RENDERERS = {
    View.HOME: render_home,
    View.LOGIN: render_login,
    View.ADMIN: render_admin,
}


def render(state: AppState) -> str:
    return VIEW_RENDERERS[state.view](state)
