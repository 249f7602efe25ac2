"""Product store: documents in the ``products`` collection and their JSON form."""

import math
import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from flask import jsonify

NEWEST_FIRST = [("created_at", -1), ("_id", -1)]

TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off"}


def format_timestamp(value) -> Optional[str]:
    if not isinstance(value, datetime):
        return None
    return value.replace(tzinfo=None).isoformat() + "Z"


def serialize_product(product_document) -> Dict[str, object]:
    try:
        price_value = float(product_document.get("price", 0) or 0)
    except (TypeError, ValueError):
        price_value = 0.0

    return {
        "id": str(product_document.get("_id")),
        "name": product_document.get("name", ""),
        "price": price_value,
        "image": product_document.get("image") or None,
        "available": bool(product_document.get("available", True)),
        "created_at": format_timestamp(product_document.get("created_at")),
        "updated_at": format_timestamp(product_document.get("updated_at")),
    }


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_price(raw_price) -> Tuple[Optional[float], Optional[str]]:
    if isinstance(raw_price, bool):
        return None, "Price must be a valid number."
    try:
        price_value = float(raw_price)
    except (TypeError, ValueError):
        return None, "Price must be a valid number."

    if not math.isfinite(price_value):
        return None, "Price must be a valid number."
    if price_value < 0:
        return None, "Price must not be negative."

    return round(price_value, 2), None


def parse_available(raw_value) -> Tuple[Optional[bool], Optional[str]]:
    if isinstance(raw_value, bool):
        return raw_value, None

    normalized = str(raw_value).strip().lower()
    if normalized in TRUE_STRINGS:
        return True, None
    if normalized in FALSE_STRINGS:
        return False, None

    return None, "Availability must be true or false."


def parse_object_id(product_id) -> Optional[ObjectId]:
    try:
        return ObjectId(product_id)
    except (InvalidId, TypeError):
        return None


def fetch_product(db, product_id: str):
    """Load a product or build the 404 response for it."""
    object_id = parse_object_id(product_id)
    product_document = None
    if object_id is not None:
        product_document = db.products.find_one({"_id": object_id})

    if not product_document:
        return None, (jsonify({"message": "Product not found"}), 404)

    return product_document, None


def list_product_documents(db) -> List[dict]:
    return list(db.products.find().sort(NEWEST_FIRST))


def search_product_documents(db, query: str) -> List[dict]:
    pattern = re.escape(str(query or ""))
    return list(
        db.products.find({"name": {"$regex": pattern, "$options": "i"}}).sort(
            NEWEST_FIRST
        )
    )


def insert_product(db, name: str, price: float, image: Optional[str] = None):
    timestamp = datetime.utcnow()
    product_document = {
        "name": name,
        "price": price,
        "image": image,
        "available": True,
        "created_at": timestamp,
        "updated_at": timestamp,
    }
    result = db.products.insert_one(product_document)
    return db.products.find_one({"_id": result.inserted_id})


def update_product_fields(db, product_id: ObjectId, updates: Dict[str, object]):
    if updates:
        changes = dict(updates)
        changes["updated_at"] = datetime.utcnow()
        db.products.update_one({"_id": product_id}, {"$set": changes})
    return db.products.find_one({"_id": product_id})


def toggle_product_availability(db, product_document):
    next_value = not bool(product_document.get("available", True))
    return update_product_fields(
        db, product_document["_id"], {"available": next_value}
    )


def delete_product_document(db, product_document) -> None:
    db.products.delete_one({"_id": product_document["_id"]})
