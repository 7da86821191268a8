"""
Product routes.

Handles:
- GET /api/products?sku=&brand=&category= - Filtered catalog from the cache
"""

from flask import Blueprint, current_app, jsonify, request

from core.exceptions import UpstreamError
from logging_config import get_logger
from .auth import require_session


# Module logger
logger = get_logger(__name__)

products_bp = Blueprint("products", __name__, url_prefix="/api")


@products_bp.route("/products", methods=["GET"])
@require_session
def list_products():
    """
    Serve products from the ProductCache.

    A cold cache falls through to the upstream API; if that fails the
    caller gets a 500.
    """
    sku = request.args.get("sku") or None
    brand = request.args.get("brand") or None
    category = request.args.get("category") or None

    product_cache = current_app.config["PRODUCT_CACHE"]
    try:
        products = product_cache.get_products(sku=sku, brand=brand, category=category)
    except UpstreamError as e:
        logger.error(f"Failed to fetch products: {e}")
        return jsonify({"error": "Failed to fetch products"}), 500

    return jsonify([p.to_dict() for p in products])
