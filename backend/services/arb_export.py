"""
Tabular export of a solved ARB PRO calculation.

One row per house, numbers unformatted so spreadsheets can do their own
currency display.
"""

import pandas as pd

from backend.services.arb_service import ArbCalculation

EXPORT_COLUMNS = [
    "house",
    "kind",
    "odd",
    "final_odd",
    "effective_odd",
    "commission_percent",
    "stake",
    "liability",
    "profit_if_win",
    "is_anchor",
]


def results_to_dataframe(calc: ArbCalculation) -> pd.DataFrame:
    """Build the per-house results table, indexed 1..n."""
    rows = []
    for i, (house, row) in enumerate(zip(calc.houses, calc.result.results)):
        rows.append({
            "house": calc.labels[i] or f"Casa {i + 1}",
            "kind": house.kind.value,
            "odd": house.odd,
            "final_odd": row.final_odd,
            "effective_odd": row.effective_odd,
            "commission_percent": house.commission_percent,
            "stake": row.computed_stake,
            "liability": row.liability,
            "profit_if_win": row.profit_if_win,
            "is_anchor": i == calc.result.anchor_index,
        })

    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    df.index = pd.RangeIndex(start=1, stop=len(df) + 1, name="n")
    return df


def results_to_csv(calc: ArbCalculation) -> str:
    """CSV text of :func:`results_to_dataframe`, with a totals footer row."""
    df = results_to_dataframe(calc)
    total = pd.DataFrame(
        [{
            "house": "TOTAL",
            "stake": calc.result.total_invested,
            "profit_if_win": calc.result.min_profit,
        }],
        columns=EXPORT_COLUMNS,
        index=pd.Index(["total"], name="n"),
    )
    return pd.concat([df, total]).to_csv(float_format="%.4f")
