from matplotlib.figure import Figure

from models.forecast import LiquidityForecastPoint
from models.recurring_transaction import SubscriptionItem
from utils.date_helpers import parse_date

POSITIVE_COLOR = "#4CAF50"
NEGATIVE_COLOR = "#F44336"
LINE_COLOR = "#2196F3"
LABEL_WIDTH = 25


def sample_rate(days: int) -> int:
    if days >= 90:
        return 3
    if days >= 60:
        return 2
    return 1


def sample_forecast(forecast: list[LiquidityForecastPoint], days: int | None = None) -> list[LiquidityForecastPoint]:
    """Every n-th point for long horizons; the final point is always kept."""
    if not forecast:
        return []
    rate = sample_rate(len(forecast) - 1 if days is None else days)
    sampled = forecast[::rate]
    if sampled[-1] is not forecast[-1]:
        sampled.append(forecast[-1])
    return sampled


def _style_ax(ax, fig, dark: bool):
    bg = "#2b2b2b" if dark else "#e4e4e4"
    fg = "#aaaaaa" if dark else "#444444"
    fig.patch.set_facecolor(bg)
    ax.set_facecolor(bg)
    ax.tick_params(colors=fg, labelsize=8)
    for spine in ax.spines.values():
        spine.set_edgecolor(fg)


def _money_formatter(v, _):
    return f"{v/1000:.0f}k" if abs(v) >= 1000 else f"{v:.0f}"


def _no_data(ax):
    ax.text(0.5, 0.5, "No data", ha="center", va="center",
            transform=ax.transAxes, color="gray")


def draw_liquidity_chart(
    forecast: list[LiquidityForecastPoint],
    lowest_point: LiquidityForecastPoint | None = None,
    days: int | None = None,
    dark: bool = False,
) -> Figure:
    """Projected balance line with the lowest point highlighted."""
    fig = Figure(figsize=(8, 2.8), dpi=80, tight_layout=True)
    ax = fig.add_subplot(111)
    _style_ax(ax, fig, dark)

    points = sample_forecast(forecast, days)
    if not points:
        _no_data(ax)
        return fig

    dates = [parse_date(p.date) for p in points]
    balances = [p.projected_balance for p in points]
    ax.plot(dates, balances, color=LINE_COLOR, linewidth=1.5)
    ax.fill_between(dates, balances, 0, color=LINE_COLOR, alpha=0.15)
    ax.axhline(0, color=NEGATIVE_COLOR, linewidth=0.8, linestyle="--")

    if lowest_point is not None:
        color = NEGATIVE_COLOR if lowest_point.projected_balance < 0 else POSITIVE_COLOR
        ax.scatter([parse_date(lowest_point.date)], [lowest_point.projected_balance],
                   color=color, zorder=3)

    ax.yaxis.set_major_formatter(_money_formatter)
    fig.autofmt_xdate()
    return fig


def draw_subscription_chart(subscriptions: list[SubscriptionItem], dark: bool = False) -> Figure:
    """Horizontal bars of each subscription's monthly-equivalent cost."""
    fig = Figure(figsize=(8, 2.8), dpi=80, tight_layout=True)
    ax = fig.add_subplot(111)
    _style_ax(ax, fig, dark)

    if not subscriptions:
        _no_data(ax)
        return fig

    ordered = sorted(subscriptions, key=lambda s: s.monthly_equivalent)
    labels = [
        s.description if len(s.description) <= LABEL_WIDTH else s.description[:LABEL_WIDTH] + "..."
        for s in ordered
    ]
    ax.barh(labels, [s.monthly_equivalent for s in ordered], color=NEGATIVE_COLOR)
    ax.xaxis.set_major_formatter(_money_formatter)
    return fig


def save_figure(fig: Figure, path: str):
    fig.savefig(path, facecolor=fig.get_facecolor())
