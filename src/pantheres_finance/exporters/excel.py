"""Export Excel stylisé : titre, sous-titre, en-tête, formats et ligne de total."""

from __future__ import annotations

import datetime
import io

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from pantheres_finance.config.loader import AppConfig
from pantheres_finance.exporters.tabular import (
    BOOLEAN,
    CURRENCY,
    DATE,
    NUMBER,
    PERCENTAGE,
    STATUS,
    SUMMABLE,
    Tableau,
)
from pantheres_finance.models import MOIS_FR

PRIMARY = "F59E0B"
SECONDARY = "1F2937"
LIGHT = "F9FAFB"
WHITE = "FFFFFF"
ALTERNATE = "FEF3C7"
BORDER = "E5E7EB"
SUCCESS = "10B981"
DANGER = "EF4444"

STATUS_COLORS = {
    "À jour": SUCCESS,
    "Actif": SUCCESS,
    "OK": SUCCESS,
    "Recette": SUCCESS,
    "Retard": DANGER,
    "Dépassé": DANGER,
    "Arrêt/Départ": DANGER,
    "Dépense": DANGER,
    "Blessé": PRIMARY,
    "Attention": PRIMARY,
}

# Lignes 1-2 : titre et sous-titre, ligne 4 : en-têtes, données à partir de la ligne 5
HEADER_ROW = 4
FIRST_DATA_ROW = HEADER_ROW + 1


def _fill(color: str) -> PatternFill:
    return PatternFill(fill_type="solid", start_color=color, end_color=color)


def _thin_border() -> Border:
    side = Side(style="thin", color=BORDER)
    return Border(top=side, bottom=side, left=side, right=side)


def _excel_value(kind: str, value: object) -> object:
    if value is None:
        return None
    if kind == PERCENTAGE and isinstance(value, (int, float)):
        return value / 100
    if kind == BOOLEAN:
        return "Oui" if value else "Non"
    return value


def to_dataframe(tableau: Tableau) -> pd.DataFrame:
    rows = [[_excel_value(col.kind, row.get(col.key)) for col in tableau.colonnes] for row in tableau.lignes]
    return pd.DataFrame(rows, columns=tableau.labels, dtype=object)


def format_date_longue(day: datetime.date) -> str:
    return f"{day.day} {MOIS_FR[day.month - 1]} {day.year}"


def _style_sheet(ws: Worksheet, tableau: Tableau, config: AppConfig, subtitle: str) -> None:
    n_cols = len(tableau.colonnes)
    last_col = get_column_letter(n_cols)
    currency_format = f'#,##0.00 "{config.currency}"'

    ws.merge_cells(f"A1:{last_col}1")
    title = ws["A1"]
    title.value = tableau.titre.upper()
    title.font = Font(name="Calibri", size=18, bold=True, color=WHITE)
    title.fill = _fill(PRIMARY)
    title.alignment = Alignment(horizontal="center", vertical="center")
    ws.row_dimensions[1].height = 35

    ws.merge_cells(f"A2:{last_col}2")
    sub = ws["A2"]
    sub.value = subtitle
    sub.font = Font(name="Calibri", size=10, italic=True, color=SECONDARY)
    sub.fill = _fill(LIGHT)
    sub.alignment = Alignment(horizontal="center", vertical="center")
    ws.row_dimensions[3].height = 10

    header_side = Side(style="medium", color=PRIMARY)
    for index, col in enumerate(tableau.colonnes, start=1):
        cell = ws.cell(row=HEADER_ROW, column=index)
        cell.font = Font(name="Calibri", size=11, bold=True, color=WHITE)
        cell.fill = _fill(SECONDARY)
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = Border(top=header_side, bottom=header_side)
        ws.column_dimensions[get_column_letter(index)].width = col.width
    ws.row_dimensions[HEADER_ROW].height = 28

    for offset in range(len(tableau.lignes)):
        row = FIRST_DATA_ROW + offset
        fill = _fill(ALTERNATE if offset % 2 == 1 else WHITE)
        for index, col in enumerate(tableau.colonnes, start=1):
            cell = ws.cell(row=row, column=index)
            cell.fill = fill
            cell.border = _thin_border()
            cell.font = Font(name="Calibri", size=11)
            if col.kind == CURRENCY:
                cell.number_format = currency_format
                cell.alignment = Alignment(horizontal="right", vertical="center")
            elif col.kind == NUMBER:
                cell.number_format = "#,##0"
                cell.alignment = Alignment(horizontal="right", vertical="center")
            elif col.kind == PERCENTAGE:
                cell.number_format = "0%"
                cell.alignment = Alignment(horizontal="center", vertical="center")
            elif col.kind == DATE:
                cell.number_format = "DD/MM/YYYY"
                cell.alignment = Alignment(horizontal="center", vertical="center")
            elif col.kind == STATUS:
                cell.alignment = Alignment(horizontal="center", vertical="center")
                color = STATUS_COLORS.get(str(cell.value))
                if color:
                    cell.font = Font(name="Calibri", size=11, bold=True, color=color)
            else:
                cell.alignment = Alignment(horizontal="left", vertical="center")

    totaux = tableau.totaux()
    if totaux:
        total_row = FIRST_DATA_ROW + len(tableau.lignes)
        for index, col in enumerate(tableau.colonnes, start=1):
            cell = ws.cell(row=total_row, column=index)
            cell.fill = _fill(SECONDARY)
            cell.font = Font(name="Calibri", size=11, bold=True, color=WHITE)
            if col.kind in SUMMABLE:
                cell.value = totaux[col.key]
                cell.number_format = currency_format if col.kind == CURRENCY else "#,##0"
                cell.alignment = Alignment(horizontal="right", vertical="center")
            elif index == 1:
                cell.value = "TOTAL"
        ws.row_dimensions[total_row].height = 28

    ws.freeze_panes = f"A{FIRST_DATA_ROW}"


def export_to_bytes(tableau: Tableau, config: AppConfig, generated: datetime.date) -> bytes:
    """Classeur d'une feuille pour le jeu de données."""
    subtitle = f"{config.club_name} - Généré le {format_date_longue(generated)}"
    sheet_name = tableau.nom.capitalize()[:31]

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        to_dataframe(tableau).to_excel(writer, sheet_name=sheet_name, index=False, startrow=HEADER_ROW - 1)
        _style_sheet(writer.sheets[sheet_name], tableau, config, subtitle)
    return buffer.getvalue()
