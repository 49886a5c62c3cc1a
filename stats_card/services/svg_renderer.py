from collections.abc import Sequence
from datetime import date
from xml.sax.saxutils import escape

from stats_card.models import ContributionDay
from stats_card.models import LanguageAggregate
from stats_card.models import StreakResult


WIDTH = 800
HEIGHT = 720

GRAPH_WIDTH = 700
GRAPH_HEIGHT = 100
GRAPH_PADDING = 20

LANGUAGE_BAR_X = 20
LANGUAGE_BAR_Y = 410
LANGUAGE_BAR_WIDTH = 760
LEGEND_TOP = 470
LEGEND_ROW_HEIGHT = 50

MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

STYLE = """
    @media (prefers-color-scheme: dark) {
      .bg { fill: #0d1117; }
      .text { fill: #c9d1d9; }
      .border { stroke: #30363d; }
    }
    @media (prefers-color-scheme: light) {
      .bg { fill: #ffffff; }
      .text { fill: #24292f; }
      .border { stroke: #d0d7de; }
    }
    .stat-number { font-size: 48px; font-weight: bold; }
    .stat-label { font-size: 16px; }
    .stat-detail { font-size: 12px; opacity: 0.7; }
    .lang-name { font-size: 16px; }
    .accent { fill: #f85149; }
    .blue { fill: #58a6ff; }
    .graph-line { stroke: #3fb950; stroke-width: 2; fill: none; }
    .graph-area { fill: #3fb95033; }
"""


def format_date(value: date) -> str:
    """Format a date as e.g. "Jan 5, 2024" regardless of locale."""

    return f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.day}, {value.year}"


def format_number(value: float) -> str:
    """Format a coordinate with at most two decimals and no trailing zeros."""

    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def activity_points(days: Sequence[ContributionDay]) -> list[tuple[float, float]]:
    """Map days to chart coordinates inside the padded graph box."""

    inner_width = GRAPH_WIDTH - 2 * GRAPH_PADDING
    inner_height = GRAPH_HEIGHT - 2 * GRAPH_PADDING
    baseline = GRAPH_HEIGHT - GRAPH_PADDING
    max_count = max([day.count for day in days] + [1])
    last_index = len(days) - 1

    points: list[tuple[float, float]] = []
    for index, day in enumerate(days):
        if last_index > 0:
            x = GRAPH_PADDING + index / last_index * inner_width
        else:
            x = float(GRAPH_PADDING)
        y = baseline - day.count / max_count * inner_height
        points.append((x, y))
    return points


def _activity_graph(days: Sequence[ContributionDay]) -> str:
    baseline = GRAPH_HEIGHT - GRAPH_PADDING
    right = GRAPH_WIDTH - GRAPH_PADDING
    axes = (
        f'<line x1="{GRAPH_PADDING}" y1="{baseline}" x2="{right}" y2="{baseline}" '
        'class="border" stroke-width="1"/>\n'
        f'    <line x1="{GRAPH_PADDING}" y1="{GRAPH_PADDING}" x2="{GRAPH_PADDING}" '
        f'y2="{baseline}" class="border" stroke-width="1"/>'
    )

    points = activity_points(days)
    if not points:
        return axes

    coordinates = " L ".join(
        f"{format_number(x)},{format_number(y)}" for x, y in points
    )
    line_path = f"M {coordinates}"
    area_path = f"{line_path} L {right},{baseline} L {GRAPH_PADDING},{baseline} Z"
    return (
        f'<path d="{area_path}" class="graph-area"/>\n'
        f'    <path d="{line_path}" class="graph-line"/>\n'
        f"    {axes}"
    )


def _language_bar(languages: Sequence[LanguageAggregate]) -> str:
    segments: list[str] = []
    offset = 0.0
    for language in languages:
        segment_width = language.percentage * (LANGUAGE_BAR_WIDTH / 100)
        segments.append(
            f'<rect x="{format_number(LANGUAGE_BAR_X + offset)}" '
            f'y="{LANGUAGE_BAR_Y}" width="{format_number(segment_width)}" '
            f'height="20" fill="{escape(language.color)}" rx="4"/>'
        )
        offset += segment_width
    return "\n    ".join(segments)


def _language_legend(languages: Sequence[LanguageAggregate]) -> str:
    if not languages:
        return (
            f'<text x="{WIDTH // 2}" y="{LEGEND_TOP + 5}" class="text lang-name" '
            'text-anchor="middle">No language data</text>'
        )

    items: list[str] = []
    for index, language in enumerate(languages):
        row, column = divmod(index, 2)
        x = 80 if column == 0 else 450
        y = LEGEND_TOP + row * LEGEND_ROW_HEIGHT
        items.append(
            f'<circle cx="{x - 30}" cy="{y}" r="8" fill="{escape(language.color)}"/>\n'
            f'    <text x="{x}" y="{y + 5}" class="text lang-name">'
            f"{escape(language.name)} {language.percentage:.2f}%</text>"
        )
    return "\n    ".join(items)


def _current_streak_caption(streaks: StreakResult) -> str:
    if not streaks.current_streak or streaks.current_streak_start is None:
        return "No active streak"
    end = streaks.current_streak_end or streaks.current_streak_start
    return f"{format_date(streaks.current_streak_start)} - {format_date(end)}"


def render_stats_svg(
    total_contributions: int,
    streaks: StreakResult,
    activity_days: Sequence[ContributionDay],
    languages: Sequence[LanguageAggregate],
    created_at: date,
) -> str:
    """Render the stats card as a fixed 800x720 SVG document.

    Output depends only on the arguments, so equal inputs give byte-identical
    documents. Light and dark palettes are both embedded and selected by the
    viewer through `prefers-color-scheme`.
    """

    longest_caption = (
        f"{format_date(streaks.longest_streak_start)} - "
        f"{format_date(streaks.longest_streak_end)}"
    )

    return f"""<svg width="{WIDTH}" height="{HEIGHT}" viewBox="0 0 {WIDTH} {HEIGHT}" xmlns="http://www.w3.org/2000/svg">
  <style>{STYLE}  </style>

  <rect width="{WIDTH}" height="{HEIGHT}" class="bg" rx="10"/>

  <rect x="10" y="10" width="780" height="140" fill="none" class="border" stroke-width="2" rx="8"/>

  <text x="140" y="80" class="text stat-number" text-anchor="middle">{total_contributions:,}</text>
  <text x="140" y="105" class="accent stat-label" text-anchor="middle">Total Contributions</text>
  <text x="140" y="130" class="text stat-detail" text-anchor="middle">{format_date(created_at)} - Present</text>

  <circle cx="400" cy="70" r="45" class="accent" opacity="0.2"/>
  <path d="M 400 45 Q 400 40 405 40 L 405 35 Q 405 30 400 30 Q 395 30 395 35 L 395 40 Q 395 40 400 45 Z" class="accent" transform="translate(0, 5)"/>
  <text x="400" y="80" class="text stat-number" text-anchor="middle">{streaks.current_streak}</text>
  <text x="400" y="105" class="blue stat-label" text-anchor="middle">Current Streak</text>
  <text x="400" y="130" class="text stat-detail" text-anchor="middle">{_current_streak_caption(streaks)}</text>

  <text x="660" y="80" class="text stat-number" text-anchor="middle">{streaks.longest_streak}</text>
  <text x="660" y="105" class="accent stat-label" text-anchor="middle">Longest Streak</text>
  <text x="660" y="130" class="text stat-detail" text-anchor="middle">{longest_caption}</text>

  <line x1="270" y1="30" x2="270" y2="130" class="border" stroke-width="2"/>
  <line x1="530" y1="30" x2="530" y2="130" class="border" stroke-width="2"/>

  <rect x="10" y="170" width="780" height="150" fill="none" class="border" stroke-width="2" rx="8"/>
  <text x="400" y="200" class="text" font-size="20" font-weight="bold" text-anchor="middle">Contribution Activity (Last {len(activity_days)} Days)</text>
  <g transform="translate(40, 210)">
    {_activity_graph(activity_days)}
  </g>

  <rect x="10" y="340" width="780" height="360" fill="none" class="border" stroke-width="2" rx="8"/>
  <text x="400" y="380" class="accent" font-size="32" font-weight="bold" text-anchor="middle">Most Used Languages</text>
  <g>
    {_language_bar(languages)}
  </g>
  <g>
    {_language_legend(languages)}
  </g>
</svg>
"""
