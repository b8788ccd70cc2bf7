# Overview: Flask API routes for the admin portal; parses input and returns JSON responses.

# backend/backoffice/routes/admin.py
"""
Admin portal API routes

SECURITY: All routes require an authenticated admin. Retailer and
wholesaler accounts are only ever created here (or via the CLI).
"""

from flask import Blueprint, request, jsonify, current_app

from ..extensions import db
from ..models import ConsumerProfile, RetailerProfile, WholesalerProfile, Loan, NfcCard
from ..decorators import require_auth, require_role
from ..services import account_service
from ..services import inventory_service
from ..services import reporting_service
from ..services.account_service import AccountError
from ..services.auth_service import PasswordValidationError
from ..validation import ValidationError, parse_money, clean_str


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.before_request
@require_auth
@require_role("admin")
def _require_admin():
    return None


@admin_bp.get("/dashboard")
def dashboard_route():
    try:
        return jsonify(reporting_service.admin_dashboard()), 200
    except Exception:
        current_app.logger.exception("Failed to build admin dashboard")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/customers")
def customers_route():
    consumers = db.session.query(ConsumerProfile).order_by(ConsumerProfile.id.desc()).all()
    return jsonify({"customers": [c.to_dict(include_user=True) for c in consumers]}), 200


@admin_bp.get("/retailers")
def list_retailers_route():
    retailers = db.session.query(RetailerProfile).order_by(RetailerProfile.id.desc()).all()
    return jsonify({"retailers": [r.to_dict(include_user=True) for r in retailers]}), 200


@admin_bp.post("/retailers")
def create_retailer_route():
    """
    Create a retailer account.

    Body: {"email", "password", "business_name", "phone", "address",
           "credit_limit"}
    """
    try:
        data = request.get_json(silent=True) or {}

        retailer = account_service.create_retailer(
            email=clean_str(data.get("email"), "email", required=True),
            password=data.get("password") or "",
            business_name=clean_str(data.get("business_name"), "business_name", required=True),
            phone=clean_str(data.get("phone"), "phone", max_length=32),
            address=clean_str(data.get("address"), "address"),
            credit_limit_cents=parse_money(data.get("credit_limit"), "credit_limit", required=False, default=0),
        )
        return jsonify({"success": True, "retailer": retailer.to_dict(include_user=True)}), 201

    except (ValidationError, AccountError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create retailer")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/wholesalers")
def list_wholesalers_route():
    wholesalers = db.session.query(WholesalerProfile).order_by(WholesalerProfile.id.desc()).all()
    return jsonify({"wholesalers": [w.to_dict(include_user=True) for w in wholesalers]}), 200


@admin_bp.post("/wholesalers")
def create_wholesaler_route():
    """Body: {"email", "password", "company_name", "phone", "address"}"""
    try:
        data = request.get_json(silent=True) or {}

        wholesaler = account_service.create_wholesaler(
            email=clean_str(data.get("email"), "email", required=True),
            password=data.get("password") or "",
            company_name=clean_str(data.get("company_name"), "company_name", required=True),
            phone=clean_str(data.get("phone"), "phone", max_length=32),
            address=clean_str(data.get("address"), "address"),
        )
        return jsonify({"success": True, "wholesaler": wholesaler.to_dict(include_user=True)}), 201

    except (ValidationError, AccountError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create wholesaler")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/loans")
def loans_route():
    loans = db.session.query(Loan).order_by(Loan.id.desc()).all()
    return jsonify({"loans": [loan.to_dict() for loan in loans]}), 200


@admin_bp.get("/nfc-cards")
def nfc_cards_route():
    cards = db.session.query(NfcCard).order_by(NfcCard.id.desc()).all()
    return jsonify({"cards": [card.to_dict() for card in cards]}), 200


@admin_bp.get("/categories")
def categories_route():
    return jsonify({"categories": inventory_service.list_categories()}), 200
