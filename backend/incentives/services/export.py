"""CSV export of incentive reports.

This is the only place amounts are rounded to currency precision.
"""

from __future__ import annotations

import csv
import io
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from incentives.schemas.incentive import IncentiveItem, IncentiveReport

EXPORT_HEADERS = [
    "Empleado",
    "Incentivo Base",
    "Total Bonificaciones",
    "Total Deducciones",
    "Valor Micros",
    "Plus Responsabilidad",
    "Valor Horas",
    "Total a Percibir",
]

_CENT = Decimal("0.01")


def format_amount(value: float | None) -> str:
    """Round half-up to cents and render with a decimal comma."""
    rounded = Decimal(str(value or 0.0)).quantize(_CENT, rounding=ROUND_HALF_UP)
    return f"{rounded:.2f}".replace(".", ",")


def _clean(text: str) -> str:
    return text.replace(";", ",").replace("\r", " ").replace("\n", " ")


def _row(item: IncentiveItem, report: IncentiveReport) -> list[str]:
    micros = (item.micros_aptacion_qty or 0.0) * (report.value_per_captacion or 0.0) + (
        item.micros_mecanizacion_qty or 0.0
    ) * (report.value_per_mecanizacion or 0.0)
    hours_value = (item.hours_payment_qty or 0.0) * (report.value_per_extra_hour or 0.0)
    return [
        _clean(item.employee_name),
        format_amount(item.base_amount),
        format_amount(sum(p.amount for p in item.pluses)),
        format_amount(sum(d.amount for d in item.deductions)),
        format_amount(micros),
        format_amount(item.responsibility_bonus_amount),
        format_amount(hours_value),
        format_amount(item.total),
    ]


def export_report_csv(report: IncentiveReport) -> str:
    """Render a report as semicolon-separated CSV prefixed with a UTF-8 BOM."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\r\n")
    writer.writerow(EXPORT_HEADERS)
    for item in report.items:
        writer.writerow(_row(item, report))
    return "\ufeff" + buffer.getvalue()


def export_filename(report: IncentiveReport) -> str:
    return f"Incentivos_{report.establishment_id}_{report.month}.csv"
