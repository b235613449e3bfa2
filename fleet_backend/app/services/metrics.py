"""
Derived report metrics.

Pure helpers shared by the reporting service: ratios that never divide by
zero, classification bands, month-over-month trends and calendar windows.
"""

import math
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

MONTH_LABELS = ["Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez"]

TREND_GROWTH = "Crescimento"
TREND_DECLINE = "Queda"
TREND_STABLE = "Estável"

# (minimum km/L, label), checked top-down
EFFICIENCY_BANDS = [
    (10, "Excelente"),
    (8, "Bom"),
    (6, "Regular"),
]
EFFICIENCY_POOR = "Ruim"

YearMonth = Tuple[int, int]


def cost_per_km(cost: float, km: float) -> float:
    return cost / km if km > 0 else 0.0


def fuel_efficiency(km: float, liters: float) -> float:
    """Kilometers per liter; 0 when either side is 0."""
    if km > 0 and liters > 0:
        return km / liters
    return 0.0


def liters_per_100km(liters: float, km: float) -> float:
    if km > 0 and liters > 0:
        return liters / km * 100
    return 0.0


def completion_rate(finalized: int, total: int) -> float:
    return finalized / total * 100 if total > 0 else 0.0


def utilization_rate(trips: int, months: int) -> float:
    """Trips per day of the window, as a percentage (30-day months)."""
    days = months * 30
    return trips / days * 100 if trips > 0 and days > 0 else 0.0


def days_until(expiry: Optional[date], today: date) -> int:
    """Whole days until expiry, rounded up; negative once expired, 0 when unknown."""
    if expiry is None:
        return 0
    return math.ceil((expiry - today).days)


def classify_efficiency(km_per_liter: float) -> str:
    for threshold, label in EFFICIENCY_BANDS:
        if km_per_liter >= threshold:
            return label
    return EFFICIENCY_POOR


def classify_cost_efficiency(cost_km: float) -> str:
    if 0 < cost_km < 2:
        return "Alta"
    if 2 <= cost_km < 4:
        return "Média"
    return "Baixa"


def trend(current: float, previous: Optional[float]) -> str:
    """Label the change against the previous month. Equal values are stable."""
    if previous is None:
        return TREND_STABLE
    if current > previous:
        return TREND_GROWTH
    if current < previous:
        return TREND_DECLINE
    return TREND_STABLE


def label_trends(values: Iterable[float]) -> List[str]:
    labels = []
    previous = None
    for value in values:
        labels.append(trend(value, previous))
        previous = value
    return labels


def report_window(months: int, today: date) -> Tuple[date, date]:
    """
    Half-open [start, end) window covering the last N calendar months.

    Aligned to month boundaries so that monthly series over the window add
    up to the window totals.
    """
    first_of_month = today.replace(day=1)
    start = first_of_month - relativedelta(months=months - 1)
    end = first_of_month + relativedelta(months=1)
    return start, end


def last_months(months: int, today: date) -> List[YearMonth]:
    """The last N calendar months including the current one, oldest first."""
    first_of_month = today.replace(day=1)
    result = []
    for offset in range(months - 1, -1, -1):
        d = first_of_month - relativedelta(months=offset)
        result.append((d.year, d.month))
    return result


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First day of the month and first day of the next month."""
    start = date(year, month, 1)
    return start, start + relativedelta(months=1)


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_label(month: int) -> str:
    return MONTH_LABELS[month - 1]


def monthly_series(
    calendar: List[YearMonth],
    build: Callable[[YearMonth, Dict[str, float]], dict],
    **aggregates: Dict[YearMonth, float],
) -> List[dict]:
    """
    Left-join per-month aggregates onto a calendar.

    Each keyword argument maps (year, month) -> value; months absent from an
    aggregate default to 0. `build` receives the month and the merged values.
    """
    series = []
    for ym in calendar:
        values = {name: per_month.get(ym, 0) or 0 for name, per_month in aggregates.items()}
        series.append(build(ym, values))
    return series
