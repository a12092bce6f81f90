from __future__ import annotations

import csv
import io
from datetime import UTC, datetime

import pytest

from incentives.schemas.incentive import IncentiveAdjustment, IncentiveItem, IncentiveReport
from incentives.services.export import EXPORT_HEADERS, export_filename, export_report_csv, format_amount


def _report() -> IncentiveReport:
    return IncentiveReport(
        establishment_id="7",
        month="2025-02",
        items=[
            IncentiveItem(
                employee_id="e1",
                employee_name="Ana; García",
                base_amount=100,
                pluses=[
                    IncentiveAdjustment(description="a", amount=10.125),
                    IncentiveAdjustment(description="b", amount=5),
                ],
                deductions=[IncentiveAdjustment(description="c", amount=2.5)],
                micros_aptacion_qty=3,
                micros_mecanizacion_qty=2,
                hours_payment_qty=1.5,
                responsibility_bonus_amount=30,
                total=175.125,
            )
        ],
        value_per_captacion=4,
        value_per_mecanizacion=1.25,
        value_per_extra_hour=12,
        updated_at=datetime(2025, 3, 1, tzinfo=UTC),
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0,00"),
        (None, "0,00"),
        (161, "161,00"),
        (2.675, "2,68"),
        (1.005, "1,01"),
        (0.125, "0,13"),
        (-3.5, "-3,50"),
        (1234.5, "1234,50"),
    ],
)
def test_format_amount_rounds_half_up(value: float | None, expected: str) -> None:
    assert format_amount(value) == expected


def test_export_starts_with_bom_and_headers() -> None:
    content = export_report_csv(_report())
    assert content.startswith("\ufeff")
    first_line = content[1:].split("\r\n")[0]
    assert first_line == ";".join(EXPORT_HEADERS)


def test_export_row_values() -> None:
    content = export_report_csv(_report())
    rows = list(csv.reader(io.StringIO(content[1:]), delimiter=";"))
    assert rows[1] == [
        "Ana, García",
        "100,00",
        "15,13",
        "2,50",
        "14,50",
        "30,00",
        "18,00",
        "175,13",
    ]


def test_export_empty_report_has_only_headers() -> None:
    report = _report()
    report.items = []
    content = export_report_csv(report)
    assert content == "\ufeff" + ";".join(EXPORT_HEADERS) + "\r\n"


def test_export_does_not_modify_report() -> None:
    report = _report()
    before = report.model_copy(deep=True)
    export_report_csv(report)
    assert report == before


def test_export_filename() -> None:
    assert export_filename(_report()) == "Incentivos_7_2025-02.csv"
