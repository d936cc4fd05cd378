"""Export CSV compatible Excel (séparateur ;, champs entre guillemets, BOM UTF-8)."""

from __future__ import annotations

import csv
import io

import pandas as pd

from pantheres_finance.exporters.tabular import Tableau, format_cell


def to_dataframe(tableau: Tableau) -> pd.DataFrame:
    """Cellules rendues en texte, colonnes libellées."""
    rows = [[format_cell(col, row.get(col.key)) for col in tableau.colonnes] for row in tableau.lignes]
    return pd.DataFrame(rows, columns=tableau.labels, dtype=object)


def export_to_bytes(tableau: Tableau) -> bytes:
    buffer = io.StringIO()
    to_dataframe(tableau).to_csv(
        buffer,
        sep=";",
        index=False,
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    return buffer.getvalue().encode("utf-8-sig")
