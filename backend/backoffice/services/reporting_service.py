# Overview: Service-layer operations for dashboards; aggregates sales, orders, stock and credit.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import (
    ConsumerProfile,
    CreditRequest,
    Loan,
    Order,
    Product,
    RetailerCredit,
    RetailerProfile,
    Sale,
    SaleItem,
    WholesalerProfile,
)
from ..time_utils import day_bounds, to_date_str, to_utc_z, utcnow


PAYMENT_METHOD_LABELS = {
    "momo": ("Mobile Money", "#ffcc00"),
    "mobile_money": ("Mobile Money", "#ffcc00"),
    "cash": ("Cash", "#52c41a"),
}
DEFAULT_METHOD_COLOR = "#1890ff"


def _stock_values(products: list[Product]) -> tuple[int, int]:
    """(value at cost, value at selling price) of the stock on hand."""
    at_cost = sum(p.stock * (p.cost_price_cents or 0) for p in products)
    at_price = sum(p.stock * p.price_cents for p in products)
    return at_cost, at_price


def _percentage(part: int, whole: int) -> int:
    return round(part / (whole or 1) * 100)


def _payment_breakdown(sales: list[Sale]) -> tuple[dict[str, int], list[dict]]:
    amounts: dict[str, int] = {}
    for sale in sales:
        method = sale.payment_method or "cash"
        amounts[method] = amounts.get(method, 0) + sale.total_amount_cents

    total = sum(amounts.values())
    chart = []
    for method, amount in amounts.items():
        label, color = PAYMENT_METHOD_LABELS.get(method, (method.replace("_", " ").title(), DEFAULT_METHOD_COLOR))
        chart.append({"name": label, "method": method, "value": _percentage(amount, total), "color": color})
    return amounts, chart


def _hourly_sales(sales: list[Sale], now) -> list[dict]:
    """Sales per hour of today, last 12 hours up to the current one."""
    buckets = [{"name": f"{hour}:00", "sales_cents": 0, "customers": 0} for hour in range(24)]
    for sale in sales:
        bucket = buckets[sale.created_at.hour]
        bucket["sales_cents"] += sale.total_amount_cents
        bucket["customers"] += 1
    return buckets[max(0, now.hour - 12):now.hour + 1]


def _top_products(retailer_id: int, limit: int = 5) -> list[dict]:
    rows = (
        db.session.query(
            SaleItem.product_id,
            func.sum(SaleItem.quantity).label("sold"),
            func.sum(SaleItem.quantity * SaleItem.price_cents).label("revenue"),
        )
        .join(Sale, Sale.id == SaleItem.sale_id)
        .filter(Sale.retailer_id == retailer_id)
        .group_by(SaleItem.product_id)
        .order_by(func.sum(SaleItem.quantity).desc())
        .limit(limit)
        .all()
    )
    products = {
        p.id: p for p in db.session.query(Product).filter(Product.id.in_([r.product_id for r in rows])).all()
    }
    return [
        {
            "id": row.product_id,
            "name": products[row.product_id].name if row.product_id in products else "Unknown Product",
            "sold": int(row.sold or 0),
            "revenue_cents": int(row.revenue or 0),
            "stock": products[row.product_id].stock if row.product_id in products else 0,
        }
        for row in rows
    ]


def retailer_dashboard(retailer: RetailerProfile) -> dict:
    now = utcnow()
    today_start, today_end = day_bounds(now)

    today_sales = db.session.query(Sale).filter(
        Sale.retailer_id == retailer.id,
        Sale.created_at >= today_start,
        Sale.created_at < today_end,
    ).all()
    total_revenue = db.session.query(func.coalesce(func.sum(Sale.total_amount_cents), 0)).filter(
        Sale.retailer_id == retailer.id
    ).scalar()
    inventory = db.session.query(Product).filter_by(retailer_id=retailer.id).all()
    pending_orders = db.session.query(Order).filter_by(retailer_id=retailer.id, status="pending").count()

    today_amount = sum(s.total_amount_cents for s in today_sales)
    customers_today = len({s.consumer_id for s in today_sales if s.consumer_id}) or len(today_sales)

    low_stock = [p for p in inventory if p.is_low_stock]
    capital, potential = _stock_values(inventory)
    method_amounts, method_chart = _payment_breakdown(today_sales)

    recent = (
        db.session.query(Sale)
        .filter_by(retailer_id=retailer.id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(5)
        .all()
    )

    return {
        "total_orders": len(today_sales),
        "pending_orders": pending_orders,
        "total_revenue_cents": int(total_revenue or 0),
        "inventory_items": len(inventory),
        "low_stock_items": len(low_stock),
        "capital_wallet_cents": capital,
        "profit_wallet_cents": potential - capital,
        "credit_limit_cents": retailer.credit_limit_cents,
        "wallet_balance_cents": retailer.wallet_balance_cents,
        "today_sales_cents": today_amount,
        "customers_today": customers_today,
        "dashboard_wallet_revenue_cents": method_amounts.get("wallet", 0) + method_amounts.get("dashboard_wallet", 0),
        "credit_wallet_revenue_cents": method_amounts.get("credit", 0) + method_amounts.get("credit_wallet", 0),
        "mobile_money_revenue_cents": method_amounts.get("momo", 0) + method_amounts.get("mobile_money", 0),
        "cash_revenue_cents": method_amounts.get("cash", 0),
        "sales_data": _hourly_sales(today_sales, now),
        "payment_methods": method_chart,
        "top_products": _top_products(retailer.id),
        "recent_orders": [
            {
                "id": sale.id,
                "customer": (sale.consumer.full_name if sale.consumer else None) or "Walk-in Customer",
                "items": len(sale.items),
                "total_cents": sale.total_amount_cents,
                "status": sale.status,
                "date": to_utc_z(sale.created_at),
                "payment": sale.payment_method,
            }
            for sale in recent
        ],
        "low_stock_list": [
            {"name": p.name, "stock": p.stock, "threshold": p.low_stock_threshold}
            for p in low_stock
        ],
    }


def wholesaler_dashboard(wholesaler: WholesalerProfile) -> dict:
    today_start, today_end = day_bounds()

    orders = db.session.query(Order).filter_by(wholesaler_id=wholesaler.id).all()
    today_orders = db.session.query(Order).filter(
        Order.wholesaler_id == wholesaler.id,
        Order.created_at >= today_start,
        Order.created_at < today_end,
    ).all()
    products = db.session.query(Product).filter_by(wholesaler_id=wholesaler.id).all()

    customer_ids = {o.retailer_id for o in orders}
    pending_credit = 0
    if customer_ids:
        pending_credit = db.session.query(CreditRequest).filter(
            CreditRequest.retailer_id.in_(customer_ids),
            CreditRequest.status == "pending",
        ).count()

    at_cost, at_price = _stock_values(products)

    return {
        "today_date": to_date_str(today_start),
        "today_sales_amount_cents": sum(o.total_amount_cents for o in today_orders),
        "today_orders_count": len(today_orders),
        "total_revenue_cents": sum(o.total_amount_cents for o in orders),
        "inventory_value_wallet_cents": at_cost,
        "profit_wallet_cents": at_price - at_cost,
        "pending_orders_count": sum(1 for o in orders if o.status == "pending"),
        "pending_credit_requests_count": pending_credit,
        "total_orders": len(orders),
        "total_products": len(products),
        "stock_value_wholesaler_cents": at_price,
    }


def wholesaler_retailers(wholesaler_id: int) -> list[RetailerProfile]:
    """Retailers that have ordered from this wholesaler, in first-order order."""
    retailer_ids = [
        rid for (rid,) in db.session.query(Order.retailer_id)
        .filter(Order.wholesaler_id == wholesaler_id)
        .group_by(Order.retailer_id)
        .order_by(func.min(Order.id))
        .all()
    ]
    if not retailer_ids:
        return []
    profiles = {p.id: p for p in db.session.query(RetailerProfile).filter(RetailerProfile.id.in_(retailer_ids)).all()}
    return [profiles[rid] for rid in retailer_ids if rid in profiles]


def wholesaler_retailer_stats(wholesaler_id: int) -> dict:
    retailers = wholesaler_retailers(wholesaler_id)
    credits = []
    if retailers:
        credits = db.session.query(RetailerCredit).filter(
            RetailerCredit.retailer_id.in_([r.id for r in retailers])
        ).all()

    extended = sum(c.credit_limit_cents for c in credits)
    used = sum(c.used_credit_cents for c in credits)

    return {
        "total_retailers": len(retailers),
        # Every retailer listed here has ordered at least once
        "active_retailers": len(retailers),
        "credit_extended_cents": extended,
        "credit_utilization_percentage": round(used / extended * 100) if extended > 0 else 0,
    }


def admin_dashboard() -> dict:
    return {
        "total_customers": db.session.query(ConsumerProfile).count(),
        "total_retailers": db.session.query(RetailerProfile).count(),
        "total_wholesalers": db.session.query(WholesalerProfile).count(),
        "total_loans": db.session.query(Loan).count(),
        "total_sales": db.session.query(Sale).count(),
        "total_revenue_cents": int(
            db.session.query(func.coalesce(func.sum(Sale.total_amount_cents), 0)).scalar() or 0
        ),
    }
