"""
Quote routes.

Handles:
- POST /api/quotes              - Create a quote (pending approval)
- POST /api/quotes/<id>/approve - Approve a quote
- GET  /api/quotes/<id>         - Read a quote
"""

from flask import Blueprint, current_app, g, jsonify

from core.exceptions import PersistenceError, UpstreamError
from logging_config import get_logger
from .auth import json_object, require_session


# Module logger
logger = get_logger(__name__)

quotes_bp = Blueprint("quotes", __name__, url_prefix="/api")


@quotes_bp.route("/quotes", methods=["POST"])
@require_session
def create_quote():
    """
    Create the quote upstream, then store it locally.

    Upstream or storage failures answer 500 with no retry.
    """
    body = json_object()
    workflow = current_app.config["QUOTE_WORKFLOW"]

    try:
        quote = workflow.create_quote(
            g.identity,
            body.get("products"),
            shipping_info=body.get("shippingInfo"),
            tax_info=body.get("taxInfo"),
        )
    except (UpstreamError, PersistenceError) as e:
        logger.error(f"Failed to create quote: {e}")
        return jsonify({"error": "Failed to create quote"}), 500

    return jsonify({
        "quoteId": quote.id,
        "upstreamQuoteNumber": quote.upstream_quote_number,
        "message": "Quote created, pending approval",
    })


@quotes_bp.route("/quotes/<int:quote_id>/approve", methods=["POST"])
@require_session
def approve_quote(quote_id: int):
    """Approve a quote; unknown ids answer 404 via the QuoteNotFound handler."""
    body = json_object()
    workflow = current_app.config["QUOTE_WORKFLOW"]

    try:
        quote = workflow.approve_quote(
            g.identity,
            quote_id,
            final_price=body.get("finalPrice"),
            shipping_info=body.get("shippingInfo"),
            tax_info=body.get("taxInfo"),
        )
    except PersistenceError as e:
        logger.error(f"Failed to approve quote {quote_id}: {e}")
        return jsonify({"error": "Failed to approve quote"}), 500

    return jsonify({"message": "Quote approved", "quote": quote.to_dict()})


@quotes_bp.route("/quotes/<int:quote_id>", methods=["GET"])
@require_session
def get_quote(quote_id: int):
    workflow = current_app.config["QUOTE_WORKFLOW"]
    quote = workflow.get_quote(g.identity, quote_id)
    return jsonify({"quote": quote.to_dict()})
