# Overview: Rolling-window dashboard aggregates over sales, lines, clients and products.

"""
Dashboard Service

Every figure is restricted to sales whose timestamp falls on or after local
midnight of the first day of the window. The revenue series is dense: days
without sales are reported with zero revenue so the chart never has gaps.
"""

from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func

from ..extensions import db
from ..models import Client, Product, Sale, SaleLine
from ..time_utils import start_of_window, to_ymd

MIN_DAYS = 1
MAX_DAYS = 365
TOP_LIMIT = 8

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_days(raw, default: int = 30) -> int:
    """
    Window length from a query-string value.

    Leading digits are honoured ("14d" -> 14); anything without them falls back
    to the default. The result is clamped to [1, 365].
    """
    match = _LEADING_INT.match(str(raw)) if raw is not None else None
    days = int(match.group(1)) if match else default
    return max(MIN_DAYS, min(MAX_DAYS, days))


def _as_float(value) -> float:
    return float(value) if value is not None else 0.0


def _as_int(value) -> int:
    return int(float(value)) if value is not None else 0


def _kpis(since) -> dict:
    revenue, sales = (
        db.session.query(func.coalesce(func.sum(Sale.total), 0), func.count(Sale.id))
        .filter(Sale.created_at >= since)
        .one()
    )

    clients = (
        db.session.query(func.count(func.distinct(Sale.client_id)))
        .filter(Sale.created_at >= since)
        .scalar()
    )

    items = (
        db.session.query(func.coalesce(func.sum(SaleLine.quantity), 0))
        .select_from(SaleLine)
        .join(Sale, SaleLine.sale_id == Sale.id)
        .filter(Sale.created_at >= since)
        .scalar()
    )

    return {
        "revenue": _as_float(revenue),
        "sales": _as_int(sales),
        "clients": _as_int(clients),
        "items": _as_int(items),
    }


def _revenue_series(since, days: int) -> list[dict]:
    day = func.date(Sale.created_at)
    rows = (
        db.session.query(day.label("day"), func.coalesce(func.sum(Sale.total), 0).label("revenue"))
        .filter(Sale.created_at >= since)
        .group_by(day)
        .all()
    )
    by_day = {to_ymd(row.day): _as_float(row.revenue) for row in rows}

    first_day = since.date()
    series = []
    for offset in range(days):
        key = (first_day + timedelta(days=offset)).isoformat()
        series.append({"date": key, "revenue": by_day.get(key, 0.0)})
    return series


def _top_clients(since) -> list[dict]:
    spend = func.coalesce(func.sum(Sale.total), 0)
    rows = (
        db.session.query(
            Client.id,
            Client.names,
            func.count(Sale.id).label("purchases"),
            spend.label("spend"),
        )
        .join(Sale, Sale.client_id == Client.id)
        .filter(Sale.created_at >= since)
        .group_by(Client.id, Client.names)
        .order_by(spend.desc(), Client.id.asc())
        .limit(TOP_LIMIT)
        .all()
    )
    return [
        {
            "id": row.id,
            "name": row.names,
            "purchaseCount": _as_int(row.purchases),
            "totalSpend": _as_float(row.spend),
        }
        for row in rows
    ]


def _top_products(since) -> list[dict]:
    units = func.coalesce(func.sum(SaleLine.quantity), 0)
    rows = (
        db.session.query(Product.id, Product.name, units.label("units"))
        .join(SaleLine, SaleLine.product_id == Product.id)
        .join(Sale, SaleLine.sale_id == Sale.id)
        .filter(Sale.created_at >= since)
        .group_by(Product.id, Product.name)
        .order_by(units.desc(), Product.id.asc())
        .limit(TOP_LIMIT)
        .all()
    )
    return [
        {"id": row.id, "name": row.name, "unitsSold": _as_int(row.units)}
        for row in rows
    ]


def compute_dashboard(days: int, today: Optional[date] = None) -> dict:
    """
    KPIs, dense daily revenue, top clients by spend and top products by units
    for the last ``days`` calendar days including today.
    """
    days = max(MIN_DAYS, min(MAX_DAYS, int(days)))
    since = start_of_window(days, today)

    return {
        "days": days,
        "since": since.date().isoformat(),
        "kpis": _kpis(since),
        "revenueSeries": _revenue_series(since, days),
        "topClients": _top_clients(since),
        "topProducts": _top_products(since),
    }
