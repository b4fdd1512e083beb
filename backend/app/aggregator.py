# backend/app/aggregator.py
"""
Reduce a window of environmental readings into per-parameter summary statistics.

Readings can be ORM rows or plain dicts and need not be ordered. For every
requested parameter the null / NaN / non-numeric values are dropped before
computing count, min, max, average, sum and latest (the value carrying the
newest timestamp). A parameter with no usable values yields the empty shape.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .errors import UnknownParameterError

# named lookback periods for the statistics endpoint
PERIODS = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
DEFAULT_PERIOD = "24h"

DEFAULT_PARAMETERS = ("rainfall_mm", "water_level_m", "temperature_c", "humidity_percent")

# numeric columns that statistics can be computed over
ENVIRONMENTAL_PARAMETERS = DEFAULT_PARAMETERS + (
    "atmospheric_pressure", "soil_moisture", "wind_speed_mps",
)
SENSOR_PARAMETERS = (
    "water_level", "flow_velocity", "flow_rate", "water_temperature", "turbidity",
    "ph_level", "dissolved_oxygen", "rainfall", "air_temperature", "humidity",
    "wind_speed", "atmospheric_pressure", "visibility", "uv_index",
    "battery_voltage", "signal_strength",
)
DEFAULT_SENSOR_PARAMETERS = ("water_level", "rainfall", "air_temperature")

# internal column name, cannot collide with a reading field
TS_COL = "__timestamp"


@dataclass
class ParameterStats:
    count: int = 0
    min: Optional[float] = None
    max: Optional[float] = None
    average: Optional[float] = None
    latest: Optional[float] = None
    sum: Optional[float] = None
    recent_sum: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AggregatedWindow:
    window_start: Optional[datetime]
    window_end: Optional[datetime]
    parameters: Dict[str, ParameterStats] = field(default_factory=dict)
    total_readings: int = 0

    def get(self, name: str) -> ParameterStats:
        return self.parameters.get(name, ParameterStats())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window_start": self.window_start,
            "window_end": self.window_end,
            "total_readings": self.total_readings,
            "statistics": {k: v.to_dict() for k, v in self.parameters.items()},
        }


def resolve_period(period: Optional[str], now: Optional[datetime] = None) -> Tuple[str, datetime, datetime]:
    """Map a period name to (period, start, end); unknown names fall back to 24h."""
    if period not in PERIODS:
        period = DEFAULT_PERIOD
    end = now or datetime.utcnow()
    return period, end - PERIODS[period], end


def parse_parameters(raw: Optional[str], allowed: Sequence[str], default: Sequence[str]) -> List[str]:
    """Split a comma-separated parameter list; anything outside `allowed` is rejected."""
    requested = [p.strip() for p in (raw or "").split(",") if p.strip()]
    if not requested:
        return list(default)
    unknown = [p for p in requested if p not in allowed]
    if unknown:
        raise UnknownParameterError(unknown, allowed)
    return list(dict.fromkeys(requested))


def _field_getter(reading):
    if isinstance(reading, Mapping):
        return reading.get
    return lambda name, default=None: getattr(reading, name, default)


def _readings_frame(readings: Iterable[Any], parameters: Sequence[str]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for r in readings:
        get = _field_getter(r)
        row = {TS_COL: get("timestamp")}
        for p in parameters:
            row[p] = get(p)
        rows.append(row)
    df = pd.DataFrame(rows, columns=[TS_COL, *parameters])
    df[TS_COL] = pd.to_datetime(df[TS_COL])
    # a reading without a timestamp cannot be placed in any window
    return df.dropna(subset=[TS_COL])


def _stats_for(df: pd.DataFrame, param: str, recent_points: Optional[int]) -> ParameterStats:
    stats = ParameterStats()
    if recent_points is not None:
        recent = df.sort_values(TS_COL, ascending=False).head(recent_points)
        stats.recent_sum = float(pd.to_numeric(recent[param], errors="coerce").fillna(0.0).sum())

    values = pd.to_numeric(df[param], errors="coerce").dropna()
    if values.empty:
        return stats

    lo = float(values.min())
    hi = float(values.max())
    # float summation can push the mean a hair outside [min, max]
    avg = min(max(float(values.mean()), lo), hi)
    latest_idx = df.loc[values.index, TS_COL].idxmax()

    stats.count = int(values.size)
    stats.min = lo
    stats.max = hi
    stats.average = avg
    stats.sum = float(values.sum())
    stats.latest = float(values.loc[latest_idx])
    return stats


def aggregate_readings(
    readings: Iterable[Any],
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
    parameters: Sequence[str] = DEFAULT_PARAMETERS,
    recent_points: Optional[int] = None,
) -> AggregatedWindow:
    """
    Build an AggregatedWindow for one location.

    window_start / window_end bound the readings inclusively; None leaves that
    side open. recent_points, when given, adds recent_sum: the sum over the N
    newest readings in the window, with missing values counted as zero.
    """
    parameters = list(dict.fromkeys(parameters))
    df = _readings_frame(readings, parameters)

    if window_start is not None:
        df = df[df[TS_COL] >= pd.Timestamp(window_start)]
    if window_end is not None:
        df = df[df[TS_COL] <= pd.Timestamp(window_end)]

    start = window_start
    end = window_end
    if not df.empty:
        start = start or df[TS_COL].min().to_pydatetime()
        end = end or df[TS_COL].max().to_pydatetime()

    window = AggregatedWindow(window_start=start, window_end=end, total_readings=int(len(df)))
    for p in parameters:
        window.parameters[p] = _stats_for(df, p, recent_points)
    return window
