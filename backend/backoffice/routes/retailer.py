# Overview: Flask API routes for the retailer portal; parses input and returns JSON responses.

# backend/backoffice/routes/retailer.py
"""
Retailer portal API routes

SECURITY: All routes require an authenticated retailer. Every lookup is
scoped to the retailer profile of the current user; a retailer user
without a profile gets 404.

Amounts in request bodies are major units (e.g. 1500.50) and are stored
as integer cents.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..models import Branch
from ..decorators import require_auth, require_role
from ..services import account_service
from ..services import credit_service
from ..services import inventory_service
from ..services import order_service
from ..services import reporting_service
from ..services import sales_service
from ..services.credit_service import CreditRequestError
from ..services.inventory_service import InventoryError
from ..services.order_service import OrderError, OrderLineRequest
from ..services.sales_service import SaleError, SaleLineRequest
from ..validation import (
    ValidationError,
    NotFoundError,
    ForbiddenError,
    parse_money,
    parse_int,
    parse_pagination,
    clean_str,
    cents_to_amount,
)


retailer_bp = Blueprint("retailer", __name__, url_prefix="/api/retailer")


@retailer_bp.before_request
@require_auth
@require_role("retailer")
def _require_retailer():
    return None


def _current_retailer():
    return account_service.get_retailer_profile(g.current_user.id)


def _line_items(items) -> list[dict]:
    if not isinstance(items, list):
        raise ValidationError("items must be a list")
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("each item must be an object")
    return items


@retailer_bp.get("/dashboard")
def dashboard_route():
    try:
        retailer = _current_retailer()
        return jsonify(reporting_service.retailer_dashboard(retailer)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to build retailer dashboard")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

@retailer_bp.get("/inventory")
def list_inventory_route():
    try:
        retailer = _current_retailer()
        products = inventory_service.list_retailer_inventory(retailer.id)
        return jsonify({"products": [p.to_dict() for p in products]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list retailer inventory")
        return jsonify({"error": "Internal server error"}), 500


@retailer_bp.post("/inventory")
def create_product_route():
    """
    Create a shop product.

    Two modes:
    - {"invoice_number": <order id>}: import the items of one of the
      retailer's wholesale orders
    - {"name", "price", ...}: manual creation
    """
    try:
        retailer = _current_retailer()
        data = request.get_json(silent=True) or {}

        if data.get("invoice_number"):
            order_id = parse_int(data.get("invoice_number"), "invoice_number")
            created = inventory_service.import_invoice(retailer_id=retailer.id, order_id=order_id)
            return jsonify({
                "success": True,
                "count": len(created),
                "message": f"Imported {len(created)} items from invoice",
            }), 201

        name = clean_str(data.get("name"), "name")
        if not name or data.get("price") in (None, ""):
            raise InventoryError("Name and Price are required for manual creation")

        product = inventory_service.create_retailer_product(
            retailer_id=retailer.id,
            name=name,
            description=clean_str(data.get("description"), "description", max_length=2000),
            sku=clean_str(data.get("sku"), "sku", max_length=64),
            barcode=clean_str(data.get("barcode"), "barcode", max_length=64),
            category=clean_str(data.get("category"), "category", max_length=128),
            price_cents=parse_money(data.get("price"), "price"),
            cost_price_cents=parse_money(data.get("costPrice"), "costPrice", required=False),
            stock=parse_int(data.get("stock"), "stock", required=False, default=0, minimum=0),
            low_stock_threshold=parse_int(
                data.get("low_stock_threshold"), "low_stock_threshold", required=False, minimum=0
            ),
            unit=clean_str(data.get("unit"), "unit", max_length=32),
        )
        return jsonify({"success": True, "product": product.to_dict()}), 201

    except (ValidationError, InventoryError) as e:
        return jsonify({"error": str(e), "details": getattr(e, "details", {})}), 400
    except ForbiddenError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create retailer product")
        return jsonify({"error": "Internal server error"}), 500


# Request body key -> (product field, parser)
_PRODUCT_PATCH_FIELDS = {
    "name": ("name", lambda v: clean_str(v, "name")),
    "description": ("description", lambda v: clean_str(v, "description", max_length=2000)),
    "category": ("category", lambda v: clean_str(v, "category", max_length=128)),
    "sku": ("sku", lambda v: clean_str(v, "sku", max_length=64)),
    "barcode": ("barcode", lambda v: clean_str(v, "barcode", max_length=64)),
    "unit": ("unit", lambda v: clean_str(v, "unit", max_length=32)),
    "status": ("status", lambda v: clean_str(v, "status", max_length=16)),
    "price": ("price_cents", lambda v: parse_money(v, "price", required=False)),
    "costPrice": ("cost_price_cents", lambda v: parse_money(v, "costPrice", required=False)),
    "stock": ("stock", lambda v: parse_int(v, "stock", required=False, minimum=0)),
    "low_stock_threshold": (
        "low_stock_threshold",
        lambda v: parse_int(v, "low_stock_threshold", required=False, minimum=0),
    ),
}


@retailer_bp.put("/inventory/<int:product_id>")
def update_product_route(product_id: int):
    """Partial update of one of the retailer's own products. Unknown keys are ignored."""
    try:
        retailer = _current_retailer()
        data = request.get_json(silent=True) or {}

        patch = {}
        for key, (field, parse) in _PRODUCT_PATCH_FIELDS.items():
            if key in data:
                patch[field] = parse(data[key])

        product = inventory_service.update_retailer_product(
            retailer_id=retailer.id, product_id=product_id, patch=patch
        )
        return jsonify({"success": True, "product": product.to_dict()}), 200

    except (ValidationError, InventoryError) as e:
        return jsonify({"error": str(e), "details": getattr(e, "details", {})}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update retailer product")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Wholesale orders
# ---------------------------------------------------------------------------

@retailer_bp.get("/orders")
def list_orders_route():
    try:
        retailer = _current_retailer()
        orders = order_service.list_retailer_orders(retailer.id)
        return jsonify({"orders": [o.to_dict(include_items=True, include_parties=True) for o in orders]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list retailer orders")
        return jsonify({"error": "Internal server error"}), 500


@retailer_bp.post("/orders")
def create_order_route():
    """
    Place a wholesale order paid from the wallet.

    Body: {"items": [{"product_id", "quantity", "price"}], "totalAmount"}
    """
    try:
        retailer = _current_retailer()
        data = request.get_json(silent=True) or {}

        items = _line_items(data.get("items") or [])
        if not items:
            raise OrderError("Order must contain items")

        lines = [
            OrderLineRequest(
                product_id=parse_int(item.get("product_id"), "product_id"),
                quantity=parse_int(item.get("quantity"), "quantity", minimum=1),
                price_cents=parse_money(item.get("price"), "price"),
            )
            for item in items
        ]
        total_cents = parse_money(data.get("totalAmount"), "totalAmount")

        order = order_service.create_order(retailer_id=retailer.id, lines=lines, total_cents=total_cents)
        return jsonify({"success": True, "order": order.to_dict(include_items=True)}), 201

    except (ValidationError, OrderError) as e:
        return jsonify({"error": str(e), "details": getattr(e, "details", {})}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create wholesale order")
        return jsonify({"error": "Internal server error"}), 500


@retailer_bp.get("/wholesaler-products")
def wholesaler_products_route():
    try:
        limit, offset = parse_pagination(request.args)
        products = inventory_service.wholesale_catalog(
            search=request.args.get("search"),
            category=request.args.get("category"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"products": products}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list wholesaler products")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Branches and wallet
# ---------------------------------------------------------------------------

@retailer_bp.get("/branches")
def list_branches_route():
    try:
        retailer = _current_retailer()
        branches = db.session.query(Branch).filter_by(retailer_id=retailer.id).order_by(Branch.id.asc()).all()
        return jsonify({"branches": [b.to_dict() for b in branches]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list branches")
        return jsonify({"error": "Internal server error"}), 500


@retailer_bp.post("/branches")
def create_branch_route():
    try:
        retailer = _current_retailer()
        data = request.get_json(silent=True) or {}

        branch = Branch(
            retailer_id=retailer.id,
            name=clean_str(data.get("name"), "name", required=True),
            location=clean_str(data.get("location"), "location"),
        )
        db.session.add(branch)
        db.session.commit()
        return jsonify({"success": True, "branch": branch.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create branch")
        return jsonify({"error": "Internal server error"}), 500


@retailer_bp.get("/wallet")
def wallet_route():
    try:
        retailer = _current_retailer()
        credit = retailer.credit
        available = credit.available_credit_cents if credit else retailer.credit_limit_cents
        return jsonify({
            "balance_cents": retailer.wallet_balance_cents,
            "balance": cents_to_amount(retailer.wallet_balance_cents),
            "credit_limit_cents": retailer.credit_limit_cents,
            "credit_limit": cents_to_amount(retailer.credit_limit_cents),
            "available_credit_cents": available,
            "available_credit": cents_to_amount(available),
        }), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load wallet")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Point of sale
# ---------------------------------------------------------------------------

@retailer_bp.get("/pos/products")
def pos_products_route():
    try:
        retailer = _current_retailer()
        limit, offset = parse_pagination(request.args)
        products = inventory_service.search_pos_products(
            retailer_id=retailer.id,
            search=request.args.get("search"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"products": [p.to_dict() for p in products]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to search POS products")
        return jsonify({"error": "Internal server error"}), 500


@retailer_bp.post("/pos/scan")
def pos_scan_route():
    try:
        retailer = _current_retailer()
        data = request.get_json(silent=True) or {}
        barcode = clean_str(data.get("barcode"), "barcode", max_length=64)
        if not barcode:
            return jsonify({"error": "Barcode is required"}), 400

        product = inventory_service.find_by_barcode(retailer_id=retailer.id, barcode=barcode)
        return jsonify({"product": product.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to scan barcode")
        return jsonify({"error": "Internal server error"}), 500


@retailer_bp.post("/pos/sale")
def pos_sale_route():
    """
    Record a POS sale and decrement stock.

    Body: {"items": [{"product_id", "quantity", "price"}], "payment_method",
           "subtotal", "tax_amount", "discount", "customer_phone"}

    Either every line is in stock and the whole sale is written, or
    nothing is written and the first short product is named in the error.
    """
    try:
        retailer = _current_retailer()
        data = request.get_json(silent=True) or {}

        items = _line_items(data.get("items") or [])
        lines = [
            SaleLineRequest(
                product_id=parse_int(item.get("product_id"), "product_id"),
                quantity=parse_int(item.get("quantity"), "quantity", minimum=1),
                price_cents=parse_money(item.get("price"), "price"),
            )
            for item in items
        ]

        sale = sales_service.create_sale(
            retailer_id=retailer.id,
            lines=lines,
            payment_method=clean_str(data.get("payment_method"), "payment_method", max_length=32) or "cash",
            subtotal_cents=parse_money(data.get("subtotal"), "subtotal", required=False),
            tax_cents=parse_money(data.get("tax_amount"), "tax_amount", required=False, default=0),
            discount_cents=parse_money(data.get("discount"), "discount", required=False, default=0),
            customer_phone=clean_str(data.get("customer_phone"), "customer_phone", max_length=32),
            user_id=g.current_user.id,
        )
        return jsonify({"success": True, "sale": sale.to_dict(include_items=True)}), 201

    except (ValidationError, SaleError) as e:
        return jsonify({"error": str(e), "details": getattr(e, "details", {})}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to record POS sale")
        return jsonify({"error": "Internal server error"}), 500


@retailer_bp.get("/pos/daily-sales")
def daily_sales_route():
    try:
        retailer = _current_retailer()
        return jsonify(sales_service.daily_sales_summary(retailer.id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load daily sales")
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Credit requests
# ---------------------------------------------------------------------------

@retailer_bp.get("/credit-requests")
def list_credit_requests_route():
    try:
        retailer = _current_retailer()
        requests = credit_service.list_retailer_requests(retailer.id)
        return jsonify({"requests": [r.to_dict() for r in requests]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to list credit requests")
        return jsonify({"error": "Internal server error"}), 500


@retailer_bp.post("/credit-requests")
def submit_credit_request_route():
    """Body: {"amount", "reason"}"""
    try:
        retailer = _current_retailer()
        data = request.get_json(silent=True) or {}

        credit_request = credit_service.submit_credit_request(
            retailer_id=retailer.id,
            amount_cents=parse_money(data.get("amount"), "amount"),
            reason=clean_str(data.get("reason"), "reason", max_length=1000),
        )
        return jsonify({"success": True, "request": credit_request.to_dict()}), 201

    except (ValidationError, CreditRequestError) as e:
        return jsonify({"error": str(e), "details": getattr(e, "details", {})}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to submit credit request")
        return jsonify({"error": "Internal server error"}), 500
