# Overview: Flask API routes for the wholesaler portal; parses input and returns JSON responses.

# backend/backoffice/routes/wholesaler.py
"""
Wholesaler portal API routes

SECURITY: All routes require an authenticated wholesaler. A wholesaler's
"retailers" are the retailers that have placed at least one order with it;
credit requests are visible and reviewable only for those retailers.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_role
from ..services import account_service
from ..services import credit_service
from ..services import inventory_service
from ..services import order_service
from ..services import reporting_service
from ..services import supplier_service
from ..services.credit_service import CreditRequestError
from ..services.inventory_service import InventoryError
from ..services.order_service import OrderError
from ..validation import (
    ValidationError,
    NotFoundError,
    parse_money,
    parse_int,
    parse_pagination,
    clean_str,
)


wholesaler_bp = Blueprint("wholesaler", __name__, url_prefix="/api/wholesaler")


@wholesaler_bp.before_request
@require_auth
@require_role("wholesaler")
def _require_wholesaler():
    return None


def _current_wholesaler():
    return account_service.get_wholesaler_profile(g.current_user.id)


@wholesaler_bp.get("/dashboard")
def dashboard_route():
    try:
        wholesaler = _current_wholesaler()
        return jsonify(reporting_service.wholesaler_dashboard(wholesaler)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to build wholesaler dashboard")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

@wholesaler_bp.get("/inventory")
def list_inventory_route():
    """
    Query parameters:
    - category: exact category match
    - search: name, sku or description contains
    - low_stock: "true" for in-stock items at or below their threshold
    - limit (default 20), offset (default 0)

    Returns:
        {products: Product[], count: int, total: int}
    """
    try:
        wholesaler = _current_wholesaler()
        limit, offset = parse_pagination(request.args, default_limit=20)

        products, total = inventory_service.list_wholesaler_inventory(
            wholesaler_id=wholesaler.id,
            category=request.args.get("category"),
            search=request.args.get("search"),
            low_stock=request.args.get("low_stock", "false").lower() == "true",
            limit=limit,
            offset=offset,
        )
        return jsonify({
            "products": [p.to_dict() for p in products],
            "count": len(products),
            "total": total,
        }), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list wholesaler inventory")
        return jsonify({"error": "Internal server error"}), 500


@wholesaler_bp.get("/inventory/stats")
def inventory_stats_route():
    try:
        wholesaler = _current_wholesaler()
        return jsonify(inventory_service.inventory_stats(wholesaler.id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load inventory stats")
        return jsonify({"error": "Internal server error"}), 500


@wholesaler_bp.get("/inventory/categories")
def categories_route():
    try:
        wholesaler = _current_wholesaler()
        return jsonify({"categories": inventory_service.list_categories(wholesaler.id)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return jsonify({"error": "Internal server error"}), 500


@wholesaler_bp.post("/inventory")
def create_product_route():
    """
    Create a catalogue product.

    Required: name, category, wholesale_price. Optional: cost_price, stock,
    low_stock_threshold, unit, sku, barcode, description, invoice_number.
    """
    try:
        wholesaler = _current_wholesaler()
        data = request.get_json(silent=True) or {}

        name = clean_str(data.get("name"), "name")
        category = clean_str(data.get("category"), "category", max_length=128)
        if not name or not category or data.get("wholesale_price") in (None, ""):
            raise InventoryError(
                "Missing required fields",
                details={"required": ["name", "category", "wholesale_price"]},
            )

        product = inventory_service.create_wholesaler_product(
            wholesaler_id=wholesaler.id,
            name=name,
            category=category,
            price_cents=parse_money(data.get("wholesale_price"), "wholesale_price"),
            cost_price_cents=parse_money(data.get("cost_price"), "cost_price", required=False),
            stock=parse_int(data.get("stock"), "stock", required=False, default=0, minimum=0),
            low_stock_threshold=parse_int(
                data.get("low_stock_threshold"), "low_stock_threshold", required=False, minimum=0
            ),
            unit=clean_str(data.get("unit"), "unit", max_length=32),
            sku=clean_str(data.get("sku"), "sku", max_length=64),
            barcode=clean_str(data.get("barcode"), "barcode", max_length=64),
            description=clean_str(data.get("description"), "description", max_length=2000),
            invoice_number=clean_str(data.get("invoice_number"), "invoice_number", max_length=64),
        )
        return jsonify({"success": True, "product": product.to_dict()}), 201

    except (ValidationError, InventoryError) as e:
        return jsonify({"error": str(e), "details": getattr(e, "details", {})}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create wholesaler product")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Retailer orders and retailers
# ---------------------------------------------------------------------------

@wholesaler_bp.get("/retailer-orders")
def retailer_orders_route():
    try:
        wholesaler = _current_wholesaler()
        orders = order_service.list_wholesaler_orders(wholesaler.id)
        return jsonify({
            "orders": [o.to_dict(include_items=True, include_parties=True) for o in orders],
            "total": len(orders),
        }), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list retailer orders")
        return jsonify({"error": "Internal server error"}), 500


@wholesaler_bp.put("/retailer-orders/<int:order_id>/status")
def update_order_status_route(order_id: int):
    """Body: {"status": "approved" | "rejected" | "completed" | "pending"}"""
    try:
        wholesaler = _current_wholesaler()
        data = request.get_json(silent=True) or {}
        status = clean_str(data.get("status"), "status", required=True, max_length=16)

        order = order_service.update_order_status(
            order_id=order_id, wholesaler_id=wholesaler.id, status=status
        )
        return jsonify({"success": True, "order": order.to_dict()}), 200

    except (ValidationError, OrderError) as e:
        return jsonify({"error": str(e), "details": getattr(e, "details", {})}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500


@wholesaler_bp.get("/retailers")
def retailers_route():
    try:
        wholesaler = _current_wholesaler()
        retailers = reporting_service.wholesaler_retailers(wholesaler.id)
        return jsonify({"retailers": [r.to_dict(include_user=True) for r in retailers]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list retailers")
        return jsonify({"error": "Internal server error"}), 500


@wholesaler_bp.get("/retailers/stats")
def retailer_stats_route():
    try:
        wholesaler = _current_wholesaler()
        return jsonify(reporting_service.wholesaler_retailer_stats(wholesaler.id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load retailer stats")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------

@wholesaler_bp.get("/supplier-orders")
def supplier_orders_route():
    try:
        return jsonify(supplier_service.supplier_orders()), 200
    except Exception:
        current_app.logger.exception("Failed to list supplier orders")
        return jsonify({"error": "Internal server error"}), 500


@wholesaler_bp.get("/suppliers")
def suppliers_route():
    try:
        suppliers = supplier_service.list_suppliers()
        return jsonify({"suppliers": [s.to_dict() for s in suppliers]}), 200
    except Exception:
        current_app.logger.exception("Failed to list suppliers")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Credit requests
# ---------------------------------------------------------------------------

@wholesaler_bp.get("/credit-requests")
def credit_requests_route():
    try:
        wholesaler = _current_wholesaler()
        return jsonify(credit_service.credit_overview(wholesaler.id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list credit requests")
        return jsonify({"error": "Internal server error"}), 500


@wholesaler_bp.post("/credit-requests/<int:request_id>/approve")
def approve_credit_request_route(request_id: int):
    try:
        wholesaler = _current_wholesaler()
        credit_request = credit_service.approve_credit_request(
            request_id=request_id,
            wholesaler_id=wholesaler.id,
            reviewer_user_id=g.current_user.id,
        )
        return jsonify({
            "success": True,
            "message": "Credit request approved successfully",
            "request": credit_request.to_dict(),
        }), 200

    except CreditRequestError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to approve credit request")
        return jsonify({"error": "Internal server error"}), 500


@wholesaler_bp.post("/credit-requests/<int:request_id>/reject")
def reject_credit_request_route(request_id: int):
    """Body: {"reason"}"""
    try:
        wholesaler = _current_wholesaler()
        data = request.get_json(silent=True) or {}

        credit_request = credit_service.reject_credit_request(
            request_id=request_id,
            wholesaler_id=wholesaler.id,
            reason=clean_str(data.get("reason"), "reason", max_length=1000),
            reviewer_user_id=g.current_user.id,
        )
        return jsonify({
            "success": True,
            "message": "Credit request rejected",
            "request": credit_request.to_dict(),
        }), 200

    except (ValidationError, CreditRequestError) as e:
        return jsonify({"error": str(e), "details": getattr(e, "details", {})}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to reject credit request")
        return jsonify({"error": "Internal server error"}), 500
