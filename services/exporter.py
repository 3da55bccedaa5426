"""Tabular CSV / Excel export of chart points."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence, Union

from openpyxl import Workbook

from models.parameters import PARAMETERS_BY_KEY
from models.records import ChartPoint

FILE_NAME_PREFIX = "air_quality_data"


class ExportFormat(str, Enum):
    csv = "csv"
    excel = "excel"


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    media_type: str
    content: bytes


def build_headers(metrics: Sequence[str]) -> List[str]:
    return ["Timestamp", *(PARAMETERS_BY_KEY[metric].export_label for metric in metrics)]


def build_row(point: ChartPoint, metrics: Sequence[str]) -> List[Union[str, float]]:
    return [point.time, *(point.value(metric) for metric in metrics)]


def _validate_metrics(metrics: Sequence[str]) -> List[str]:
    selected = list(metrics)
    if not selected:
        raise ValueError("At least one metric must be selected for export.")
    unknown = [metric for metric in selected if metric not in PARAMETERS_BY_KEY]
    if unknown:
        raise ValueError(f"Unknown metrics: {', '.join(unknown)}")
    return selected


def _render_csv(points: Sequence[ChartPoint], metrics: Sequence[str]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(build_headers(metrics))
    for point in points:
        writer.writerow(build_row(point, metrics))
    return buffer.getvalue().encode("utf-8")


def _render_excel(points: Sequence[ChartPoint], metrics: Sequence[str]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Data"
    sheet.append(build_headers(metrics))
    for point in points:
        sheet.append(build_row(point, metrics))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_points(
    points: Sequence[ChartPoint],
    metrics: Sequence[str],
    fmt: ExportFormat = ExportFormat.csv,
    generated_at: Optional[datetime] = None,
) -> ExportArtifact:
    """Render ``points`` as a downloadable table with one column per metric."""
    selected = _validate_metrics(metrics)
    stamp = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%SZ")

    if fmt is ExportFormat.excel:
        return ExportArtifact(
            filename=f"{FILE_NAME_PREFIX}_{stamp}.xlsx",
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            content=_render_excel(points, selected),
        )
    return ExportArtifact(
        filename=f"{FILE_NAME_PREFIX}_{stamp}.csv",
        media_type="text/csv; charset=utf-8",
        content=_render_csv(points, selected),
    )
