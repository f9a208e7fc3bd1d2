"""Admin exports: CSV order list and a PDF report grouped by restaurant."""

from __future__ import annotations

import csv
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO, StringIO
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from delivery_hub.core.errors import ValidationError
from delivery_hub.models import Order, Restaurant
from delivery_hub.services.order_status import ORDER_STATUSES
from delivery_hub.utils.pdf_fonts import register_pdf_font

STATUS_LABELS: dict[str, str] = {
    "pending": "Pendiente",
    "confirmed": "Confirmado",
    "preparing": "Preparando",
    "ready": "Listo",
    "picked_up": "En camino",
    "delivered": "Entregado",
    "cancelled": "Cancelado",
}
CSV_HEADERS = ["ID", "Fecha", "Cliente", "Email", "Restaurante", "Repartidor", "Estado", "Dirección", "Total", "Método de Pago"]


def _reportlab():
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4
    from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    return {
        "colors": colors,
        "A4": A4,
        "ParagraphStyle": ParagraphStyle,
        "getSampleStyleSheet": getSampleStyleSheet,
        "Paragraph": Paragraph,
        "SimpleDocTemplate": SimpleDocTemplate,
        "Spacer": Spacer,
        "Table": Table,
        "TableStyle": TableStyle,
    }


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def _format_money(value: Decimal | int | float) -> str:
    return f"S/{Decimal(value):.2f}"


def list_orders(
    db: Session,
    *,
    status: str | None = None,
    owner_id: int | None = None,
    limit: int = 50,
) -> list[Order]:
    """Newest orders first, optionally filtered by status or restaurant owner, with related rows loaded."""
    query = (
        select(Order)
        .options(joinedload(Order.restaurant), joinedload(Order.customer), joinedload(Order.driver))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
    )
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {status}")
        query = query.where(Order.status == status)
    if owner_id is not None:
        query = query.where(Order.restaurant_id.in_(select(Restaurant.id).where(Restaurant.owner_id == owner_id)))
    return list(db.scalars(query).unique().all())


def order_export_row(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "created_at": order.created_at,
        "customer_name": order.customer.full_name if order.customer else "Cliente",
        "customer_email": order.customer.email if order.customer else "",
        "restaurant_name": order.restaurant.name if order.restaurant else "",
        "driver_name": order.driver.full_name if order.driver else "",
        "status": order.status,
        "delivery_address": order.delivery_address,
        "total": order.total,
        "payment_method": order.payment_method or "cash",
    }


def render_orders_csv(rows: Iterable[dict[str, Any]]) -> str:
    """Render export rows as CSV text; quoting is left to the csv module."""
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for row in rows:
        created_at = row["created_at"]
        writer.writerow(
            [
                row["id"],
                created_at.strftime("%Y-%m-%d %H:%M") if isinstance(created_at, datetime) else created_at,
                row["customer_name"],
                row["customer_email"],
                row["restaurant_name"],
                row["driver_name"],
                status_label(row["status"]),
                row["delivery_address"],
                _format_money(row["total"]),
                row["payment_method"],
            ]
        )
    return buffer.getvalue()


def export_filename(today: date | None = None, extension: str = "csv") -> str:
    return f"pedidos_{(today or date.today()).isoformat()}.{extension}"


def group_by_restaurant(rows: Iterable[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        grouped[row["restaurant_name"] or "Sin restaurante"].append(row)
    return dict(grouped)


def render_orders_pdf(rows: Iterable[dict[str, Any]], meta: dict[str, Any]) -> bytes:
    """One section per restaurant: status counts, then the order table."""
    rl = _reportlab()
    font_name = register_pdf_font()
    styles = rl["getSampleStyleSheet"]()
    title_style = rl["ParagraphStyle"]("ReportTitle", parent=styles["Title"], fontName=font_name)
    heading_style = rl["ParagraphStyle"]("ReportHeading", parent=styles["Heading2"], fontName=font_name)
    normal_style = rl["ParagraphStyle"]("ReportNormal", parent=styles["Normal"], fontName=font_name)
    table_style = rl["TableStyle"](
        [
            ("BACKGROUND", (0, 0), (-1, 0), rl["colors"].lightgrey),
            ("GRID", (0, 0), (-1, -1), 0.5, rl["colors"].black),
            ("FONTNAME", (0, 0), (-1, -1), font_name),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
        ]
    )

    story: list[Any] = [
        rl["Paragraph"](f"Reporte de pedidos - {meta.get('today', date.today().isoformat())}", title_style),
        rl["Paragraph"](f"Generado: {meta.get('generated_at', '-')}", normal_style),
        rl["Spacer"](1, 10),
    ]
    grouped = group_by_restaurant(rows)
    if not grouped:
        story.append(rl["Paragraph"]("No hay pedidos para este filtro.", normal_style))

    for restaurant_name in sorted(grouped, key=str.lower):
        restaurant_rows = grouped[restaurant_name]
        story.append(rl["Paragraph"](f"Restaurante: {restaurant_name}", heading_style))

        counts: dict[str, int] = defaultdict(int)
        revenue = Decimal("0.00")
        for row in restaurant_rows:
            counts[row["status"]] += 1
            if row["status"] == "delivered":
                revenue += Decimal(row["total"])
        summary = ", ".join(f"{status_label(status)}: {count}" for status, count in sorted(counts.items()))
        story.append(rl["Paragraph"](f"{summary} • Ventas entregadas: {_format_money(revenue)}", normal_style))
        story.append(rl["Spacer"](1, 6))

        table = rl["Table"](
            [
                ["ID", "Cliente", "Repartidor", "Estado", "Total"],
                *[
                    [
                        str(row["id"]),
                        row["customer_name"],
                        row["driver_name"] or "-",
                        status_label(row["status"]),
                        _format_money(row["total"]),
                    ]
                    for row in restaurant_rows
                ],
            ],
            colWidths=[40, 150, 130, 80, 70],
        )
        table.setStyle(table_style)
        story.append(table)
        story.append(rl["Spacer"](1, 12))

    buffer = BytesIO()
    rl["SimpleDocTemplate"](buffer, pagesize=rl["A4"]).build(story)
    return buffer.getvalue()
