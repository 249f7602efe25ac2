import os
from datetime import timedelta
from typing import Dict, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, request, send_from_directory
from flask_cors import CORS
from flask_jwt_extended import jwt_required
from flask_pymongo import PyMongo
from pymongo.errors import PyMongoError
from werkzeug.exceptions import InternalServerError, RequestEntityTooLarge
from werkzeug.middleware.proxy_fix import ProxyFix

from storefront import accounts, products, uploads
from storefront.sessions import (
    current_identity,
    init_jwt,
    issue_session_token,
)

load_dotenv()

DEFAULT_DATABASE_NAME = "storefront"
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def create_app(config: Optional[Dict] = None, database=None) -> Flask:
    """Create and configure the Flask application.

    ``config`` overrides values read from the environment; ``database`` is a
    pymongo-compatible database handle used instead of connecting through
    ``MONGO_URI``.
    """
    app = Flask(__name__)

    # Honor proxy headers so logged client addresses are the real ones.
    trusted_proxy_hops_raw = os.getenv("TRUSTED_PROXY_HOPS", "1")
    try:
        trusted_proxy_hops = max(0, int(trusted_proxy_hops_raw))
    except (TypeError, ValueError):
        trusted_proxy_hops = 1
    if trusted_proxy_hops:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=trusted_proxy_hops,
            x_proto=trusted_proxy_hops,
            x_host=trusted_proxy_hops,
            x_port=trusted_proxy_hops,
        )

    # --- Configuration ---
    app.config["JWT_SECRET_KEY"] = os.getenv(
        "JWT_SECRET_KEY", "change-me-in-production"
    )
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(hours=24)
    app.config["JWT_ERROR_MESSAGE_KEY"] = "message"
    app.config["MONGO_URI"] = os.getenv(
        "MONGO_URI", f"mongodb://localhost:27017/{DEFAULT_DATABASE_NAME}"
    )
    max_upload_mb = int(os.getenv("MAX_UPLOAD_SIZE_MB", "5"))
    app.config["PRODUCT_MAX_IMAGE_BYTES"] = max_upload_mb * 1024 * 1024
    app.config["PRODUCT_UPLOAD_FOLDER"] = os.getenv(
        "UPLOAD_FOLDER", os.path.join(app.root_path, "uploads")
    )
    app.config["DEFAULT_ADMIN_USERNAME"] = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
    app.config["DEFAULT_ADMIN_PASSWORD"] = os.getenv("DEFAULT_ADMIN_PASSWORD", "change-me")
    app.config["BCRYPT_ROUNDS"] = int(os.getenv("BCRYPT_ROUNDS", "12"))

    if config:
        app.config.update(config)

    upload_folder = app.config["PRODUCT_UPLOAD_FOLDER"]
    os.makedirs(upload_folder, exist_ok=True)
    bcrypt_rounds = app.config["BCRYPT_ROUNDS"]
    max_image_bytes = app.config["PRODUCT_MAX_IMAGE_BYTES"]
    # Room for the other form fields and multipart boundaries.
    if not app.config.get("MAX_CONTENT_LENGTH"):
        app.config["MAX_CONTENT_LENGTH"] = max_image_bytes + MULTIPART_OVERHEAD_BYTES
    too_large_message = uploads.too_large_message(max_image_bytes)

    # --- Initialize extensions ---
    allowed_origins = []
    cors_extra = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if cors_extra:
        for origin in cors_extra.split(","):
            trimmed = origin.strip()
            if trimmed:
                allowed_origins.append(trimmed)

    CORS(app, origins=allowed_origins or "*")

    init_jwt(app)

    if database is None:
        mongo = PyMongo(app)
        database = mongo.db
        if database is None:
            database = mongo.cx[DEFAULT_DATABASE_NAME]
    db = database

    # --- Bootstrap ---
    admin_username = app.config["DEFAULT_ADMIN_USERNAME"]
    try:
        accounts.ensure_account_indexes(db)
    except PyMongoError as exc:
        app.logger.warning("Unable to ensure indexes for accounts: %s", exc)

    try:
        if accounts.seed_default_admin(
            db, admin_username, app.config["DEFAULT_ADMIN_PASSWORD"], bcrypt_rounds
        ):
            app.logger.info("Created default admin account '%s'", admin_username)
        else:
            app.logger.info("Admin account already exists")

        census = accounts.account_census(db, admin_username)
        app.logger.info(
            "Default admin present: %s; total accounts: %s",
            census["default_admin_exists"],
            census["total_accounts"],
        )
    except PyMongoError as exc:
        app.logger.error("Unable to seed the default admin account: %s", exc)

    # --- Errors ---

    @app.errorhandler(404)
    def route_not_found(error):
        return jsonify({"message": "Route not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"message": "Method not allowed"}), 405

    @app.errorhandler(RequestEntityTooLarge)
    def upload_too_large(error):
        return jsonify({"message": too_large_message}), 400

    @app.errorhandler(InternalServerError)
    def internal_error(error):
        original = getattr(error, "original_exception", None)
        if original is not None:
            app.logger.error("Unhandled error: %s", original, exc_info=original)
        return jsonify({"message": "Internal server error"}), 500

    def read_payload() -> Dict:
        payload = request.form.to_dict() if request.form else {}
        if not payload and request.is_json:
            payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            payload = {}
        return payload

    # --- ROUTES ---

    @app.route("/uploads/<path:filename>")
    def serve_uploaded_file(filename: str):
        return send_from_directory(upload_folder, filename)

    @app.route("/health")
    def health():
        return {"status": "ok"}, 200

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            payload = {}
        username = str(payload.get("username") or "")
        password = str(payload.get("password") or "")

        if not username or not password:
            return jsonify({"message": "Username and password are required"}), 400

        try:
            account = accounts.authenticate(db, username, password, bcrypt_rounds)
        except PyMongoError:
            app.logger.exception("Login lookup failed")
            return jsonify({"message": "Internal server error"}), 500

        if not account:
            app.logger.info(
                "Rejected sign-in from %s",
                request.headers.get("X-Forwarded-For", request.remote_addr),
            )
            return jsonify({"message": "Invalid credentials"}), 401

        token = issue_session_token(account)
        app.logger.info("Admin '%s' signed in", account.get("username"))

        return jsonify(
            {
                "message": "Login successful",
                "token": token,
                "user": accounts.serialize_account(account),
            }
        )

    @app.route("/api/auth/verify", methods=["GET"])
    @jwt_required()
    def verify():
        return jsonify({"valid": True, "user": current_identity()})

    @app.route("/api/products", methods=["GET"])
    def list_products():
        try:
            product_docs = products.list_product_documents(db)
        except PyMongoError:
            app.logger.exception("Get products failed")
            return jsonify({"message": "Failed to fetch products"}), 500

        return jsonify([products.serialize_product(doc) for doc in product_docs])

    @app.route("/api/products/search/<query>", methods=["GET"])
    def search_products(query: str):
        try:
            product_docs = products.search_product_documents(db, query)
        except PyMongoError:
            app.logger.exception("Search products failed")
            return jsonify({"message": "Failed to search products"}), 500

        return jsonify([products.serialize_product(doc) for doc in product_docs])

    @app.route("/api/products/<product_id>", methods=["GET"])
    def get_product(product_id: str):
        try:
            product_document, load_error = products.fetch_product(db, product_id)
        except PyMongoError:
            app.logger.exception("Get product failed")
            return jsonify({"message": "Failed to fetch product"}), 500
        if load_error:
            return load_error

        return jsonify(products.serialize_product(product_document))

    @app.route("/api/products", methods=["POST"])
    @jwt_required()
    def create_product():
        payload = read_payload()
        name = str(payload.get("name") or "").strip()
        raw_price = payload.get("price")

        if not name or products.is_blank(raw_price):
            return jsonify({"message": "Name and price are required"}), 400

        price_value, price_error = products.parse_price(raw_price)
        if price_error:
            return jsonify({"message": price_error}), 400

        image_path = None
        image_file = request.files.get("image")
        if image_file and image_file.filename:
            image_path, image_error = uploads.save_product_image(
                image_file, upload_folder, max_image_bytes
            )
            if image_error:
                app.logger.warning("Rejected product image: %s", image_error)
                return jsonify({"message": image_error}), 400

        try:
            created_product = products.insert_product(
                db, name, price_value, image_path
            )
        except PyMongoError:
            app.logger.exception("Add product failed")
            uploads.remove_product_image(image_path, upload_folder)
            return jsonify({"message": "Failed to add product"}), 500

        app.logger.info(
            "Product %s created by %s",
            created_product["_id"],
            current_identity().get("username"),
        )

        return (
            jsonify(
                {
                    "message": "Product added successfully",
                    "product": products.serialize_product(created_product),
                }
            ),
            201,
        )

    @app.route("/api/products/<product_id>", methods=["PUT"])
    @jwt_required()
    def update_product(product_id: str):
        try:
            product_document, load_error = products.fetch_product(db, product_id)
        except PyMongoError:
            app.logger.exception("Update product lookup failed")
            return jsonify({"message": "Failed to update product"}), 500
        if load_error:
            return load_error

        payload = read_payload()
        updates: Dict[str, object] = {}

        name = str(payload.get("name") or "").strip()
        if name:
            updates["name"] = name

        raw_price = payload.get("price")
        if not products.is_blank(raw_price):
            price_value, price_error = products.parse_price(raw_price)
            if price_error:
                return jsonify({"message": price_error}), 400
            updates["price"] = price_value

        raw_available = payload.get("available")
        if not products.is_blank(raw_available):
            available_value, available_error = products.parse_available(raw_available)
            if available_error:
                return jsonify({"message": available_error}), 400
            updates["available"] = available_value

        new_image_path = None
        image_file = request.files.get("image")
        if image_file and image_file.filename:
            new_image_path, image_error = uploads.save_product_image(
                image_file, upload_folder, max_image_bytes
            )
            if image_error:
                app.logger.warning("Rejected product image: %s", image_error)
                return jsonify({"message": image_error}), 400
            updates["image"] = new_image_path

        try:
            updated_product = products.update_product_fields(
                db, product_document["_id"], updates
            )
        except PyMongoError:
            app.logger.exception("Update product failed")
            uploads.remove_product_image(new_image_path, upload_folder)
            return jsonify({"message": "Failed to update product"}), 500

        if not updated_product:
            uploads.remove_product_image(new_image_path, upload_folder)
            return jsonify({"message": "Product not found"}), 404

        previous_image = product_document.get("image")
        if new_image_path and previous_image and previous_image != new_image_path:
            uploads.remove_product_image(previous_image, upload_folder)

        return jsonify(
            {
                "message": "Product updated successfully",
                "product": products.serialize_product(updated_product),
            }
        )

    @app.route("/api/products/<product_id>/toggle", methods=["PATCH"])
    @jwt_required()
    def toggle_product(product_id: str):
        try:
            product_document, load_error = products.fetch_product(db, product_id)
            if load_error:
                return load_error
            updated_product = products.toggle_product_availability(
                db, product_document
            )
        except PyMongoError:
            app.logger.exception("Toggle product failed")
            return jsonify({"message": "Failed to update product status"}), 500

        if not updated_product:
            return jsonify({"message": "Product not found"}), 404

        return jsonify(
            {
                "message": "Product status updated successfully",
                "product": products.serialize_product(updated_product),
            }
        )

    @app.route("/api/products/<product_id>", methods=["DELETE"])
    @jwt_required()
    def delete_product(product_id: str):
        try:
            product_document, load_error = products.fetch_product(db, product_id)
            if load_error:
                return load_error
            products.delete_product_document(db, product_document)
        except PyMongoError:
            app.logger.exception("Delete product failed")
            return jsonify({"message": "Failed to delete product"}), 500

        uploads.remove_product_image(product_document.get("image"), upload_folder)

        app.logger.info(
            "Product %s deleted by %s",
            product_document["_id"],
            current_identity().get("username"),
        )

        return jsonify({"message": "Product deleted successfully"})

    return app
