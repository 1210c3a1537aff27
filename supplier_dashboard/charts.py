# charts.py: ApexCharts option builders for the dashboard widgets

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from . import settings

NO_DATA_MESSAGE = "No data available for the selected period"


@dataclass
class ChartPayload:
    """
    A rendered widget: chart kind, ApexCharts series and options.
    `empty` marks the explicit no-data state; `error` carries the inline
    message shown when the widget could not be computed.
    """

    kind: str
    title: str
    series: Any = field(default_factory=list)
    options: dict = field(default_factory=dict)
    empty: bool = False
    message: Optional[str] = None
    error: Optional[str] = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def no_data(cls, kind: str, title: str, message: str = NO_DATA_MESSAGE, **extra) -> "ChartPayload":
        return cls(kind=kind, title=title, empty=True, message=message, extra=extra)

    @classmethod
    def failed(cls, kind: str, title: str, error: str) -> "ChartPayload":
        return cls(kind=kind, title=title, empty=True, error=error, message=error)

    def to_dict(self) -> dict:
        return asdict(self)


def _money(value: float) -> float:
    return round(float(value), 2)


def time_series_chart(
    kind: str,
    title: str,
    series_name: str,
    labels: list[str],
    values: list[float],
    y_title: str,
    color: str = settings.PALETTE[0],
) -> ChartPayload:
    """Area or bar chart with sorted bucket keys on the x axis."""
    if not labels:
        return ChartPayload.no_data(kind, title)
    return ChartPayload(
        kind=kind,
        title=title,
        series=[{"name": series_name, "data": [_money(v) for v in values]}],
        options={
            "chart": {"type": kind, "height": 400, "background": "#FFFFFF"},
            "colors": [color],
            "xaxis": {"categories": labels, "title": {"text": "Time"}, "type": "category"},
            "yaxis": {"title": {"text": y_title}},
            "title": {"text": title, "align": "center"},
            "dataLabels": {"enabled": False},
            "stroke": {"curve": "smooth", "width": 2},
        },
    )


def category_bar_chart(
    title: str,
    categories: list[str],
    series: list[dict],
    x_title: str,
    y_title: str,
    horizontal: bool = False,
    stacked: bool = False,
    colors: Optional[list[str]] = None,
) -> ChartPayload:
    """Bar chart with one or more named series over categorical keys."""
    if not categories or not series:
        return ChartPayload.no_data("bar", title)
    return ChartPayload(
        kind="bar",
        title=title,
        series=series,
        options={
            "chart": {"type": "bar", "height": 400, "stacked": stacked, "background": "#FFFFFF"},
            "plotOptions": {"bar": {"horizontal": horizontal}},
            "xaxis": {"categories": categories, "title": {"text": x_title}},
            "yaxis": {"title": {"text": y_title}},
            "title": {"text": title, "align": "center"},
            "legend": {"position": "top"},
            "colors": colors or settings.PALETTE[: max(len(series), 1)],
            "dataLabels": {"enabled": False},
        },
    )


def share_chart(kind: str, title: str, labels: list[str], values: list[float], **extra) -> ChartPayload:
    """Pie or donut chart; `values` are the slice sizes in label order."""
    if not labels:
        return ChartPayload.no_data(kind, title, **extra)
    options = {
        "chart": {"type": kind, "height": 400, "background": "#FFFFFF"},
        "labels": labels,
        "colors": distinct_colors(len(labels)),
        "legend": {"show": False},
        "dataLabels": {"enabled": True},
        "title": {"text": title, "align": "center"},
    }
    if kind == "donut":
        options["plotOptions"] = {"pie": {"donut": {"size": "65%"}}}
    return ChartPayload(kind=kind, title=title, series=list(values), options=options, extra=extra)


def treemap_chart(title: str, labels: list[str], values: list[float]) -> ChartPayload:
    if not labels:
        return ChartPayload.no_data("treemap", title)
    return ChartPayload(
        kind="treemap",
        title=title,
        series=[{"data": [{"x": label, "y": _money(value)} for label, value in zip(labels, values)]}],
        options={
            "chart": {"type": "treemap", "height": 400, "background": "#FFFFFF"},
            "colors": distinct_colors(len(labels)),
            "plotOptions": {"treemap": {"distributed": True}},
            "title": {"text": title, "align": "center"},
            "legend": {"show": False},
        },
    )


def line_chart(title: str, series: list[dict], y_title: str = "Units") -> ChartPayload:
    """Datetime line chart; each series holds {"x": ISO date, "y": value} points."""
    if not series:
        return ChartPayload.no_data("line", title)
    return ChartPayload(
        kind="line",
        title=title,
        series=series,
        options={
            "chart": {"type": "line", "height": 500, "zoom": {"enabled": True}},
            "xaxis": {"type": "datetime"},
            "yaxis": {"title": {"text": y_title}},
            "stroke": {"curve": "stepline", "width": 1},
            "tooltip": {"x": {"format": "dd MMM yyyy"}, "shared": True},
            "title": {"text": title, "align": "center"},
            "dataLabels": {"enabled": False},
        },
    )


def table(title: str, columns: list[str], rows: list[list], message: str = NO_DATA_MESSAGE, **extra) -> ChartPayload:
    if not rows:
        return ChartPayload.no_data("table", title, message=message, columns=columns, **extra)
    return ChartPayload(kind="table", title=title, series=rows, options={"columns": columns}, extra=extra)


def distinct_colors(count: int) -> list[str]:
    """Golden-angle HSL colors, stable for a given count."""
    return [f"hsl({(i * 137.508) % 360:.0f}, 70%, 50%)" for i in range(count)]
