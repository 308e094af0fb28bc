"""
Zone Metrics Calculator.
Derives floor, wall, perimeter and roof quantities from zone geometry.
"""

import math
import re
from enum import Enum

import structlog

from ..config import settings
from .models import MetricSource, Opening, Subroom, Zone, ZoneMetrics, ZoneType

logger = structlog.get_logger()


class MetricAlias(str, Enum):
    """Closed set of metric names usable in quantity formulas."""

    FLOOR_SF = "FLOOR_SF"
    CEIL_SF = "CEIL_SF"
    CEILING_SF = "CEILING_SF"
    WALL_SF = "WALL_SF"
    WALL_SF_NET = "WALL_SF_NET"
    WALLS_CEILING_SF = "WALLS_CEILING_SF"
    PERIMETER_LF = "PERIMETER_LF"
    HEIGHT_FT = "HEIGHT_FT"
    LONG_WALL_SF = "LONG_WALL_SF"
    SHORT_WALL_SF = "SHORT_WALL_SF"
    OPENING_SF = "OPENING_SF"
    ROOF_SF = "ROOF_SF"
    ROOF_SQ = "ROOF_SQ"
    PITCH_MULT = "PITCH_MULT"

    @classmethod
    def parse(cls, name: str) -> "MetricAlias | None":
        """Look up an alias by name, case-insensitively."""
        try:
            return cls(name.strip().upper())
        except ValueError:
            return None


# ZoneMetrics field backing each alias
METRIC_FIELDS: dict[MetricAlias, str] = {
    MetricAlias.FLOOR_SF: "floor_sf",
    MetricAlias.CEIL_SF: "ceiling_sf",
    MetricAlias.CEILING_SF: "ceiling_sf",
    MetricAlias.WALL_SF: "wall_sf",
    MetricAlias.WALL_SF_NET: "wall_sf_net",
    MetricAlias.WALLS_CEILING_SF: "walls_ceiling_sf",
    MetricAlias.PERIMETER_LF: "perimeter_lf",
    MetricAlias.HEIGHT_FT: "height_ft",
    MetricAlias.LONG_WALL_SF: "long_wall_sf",
    MetricAlias.SHORT_WALL_SF: "short_wall_sf",
    MetricAlias.OPENING_SF: "opening_sf",
    MetricAlias.ROOF_SF: "roof_sf",
    MetricAlias.ROOF_SQ: "roof_squares",
    MetricAlias.PITCH_MULT: "roof_pitch_multiplier",
}

# Rise/run pitch such as "6/12", "6:12" or "6 / 12"
PITCH_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[/:]\s*(\d+(?:\.\d+)?)\s*$")
# Bare rise, assumed over a 12 inch run
BARE_RISE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*$")
FLAT_PITCHES = {"flat", "none", "0"}


def format_number(value: float) -> str:
    """Render a number without trailing zeros (168.0 -> '168', 11.180 -> '11.18')."""
    if value is None:
        return "0"
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def pitch_multiplier(pitch: str | None) -> float:
    """
    Convert a rise/run pitch into a roof area multiplier.

    The multiplier is the slope length per unit of horizontal run,
    sqrt(1 + (rise/run)^2). Missing, flat or unparseable pitches give 1.0.
    """
    if pitch is None:
        return 1.0

    text = pitch.strip().lower()
    if not text or text in FLAT_PITCHES:
        return 1.0

    match = PITCH_PATTERN.match(text)
    if match:
        rise, run = float(match.group(1)), float(match.group(2))
    else:
        bare = BARE_RISE_PATTERN.match(text)
        if not bare:
            logger.warning("invalid_roof_pitch", pitch=pitch)
            return 1.0
        rise, run = float(bare.group(1)), 12.0

    if run <= 0:
        logger.warning("invalid_roof_pitch", pitch=pitch, reason="zero run")
        return 1.0

    return math.sqrt(1 + (rise / run) ** 2)


def compute_zone_metrics(
    zone: Zone,
    openings: list[Opening] | None = None,
    subrooms: list[Subroom] | None = None,
    default_height_ft: float | None = None,
    precision: int | None = None,
) -> ZoneMetrics:
    """
    Compute the metrics snapshot for a zone.

    Args:
        zone: Zone with geometry
        openings: Openings to deduct (defaults to the zone's own)
        subrooms: Subrooms to add or cut out (defaults to the zone's own)
        default_height_ft: Height used when the zone has none
        precision: Decimal places for rounding

    Returns:
        ZoneMetrics; all zero with computed_from=unknown when length or
        width is missing
    """
    openings = zone.openings if openings is None else openings
    subrooms = zone.subrooms if subrooms is None else subrooms
    default_height = default_height_ft if default_height_ft is not None else settings.default_height_ft
    digits = precision if precision is not None else settings.metric_precision

    length = zone.length_ft or 0.0
    width = zone.width_ft or 0.0
    if length <= 0 or width <= 0:
        logger.info("zone_geometry_unknown", zone_id=zone.id)
        return ZoneMetrics(computed_from=MetricSource.UNKNOWN)

    default_height_used = not zone.height_ft or zone.height_ft <= 0
    height = default_height if default_height_used else zone.height_ft

    subroom_net = sum(
        sub.length_ft * sub.width_ft * (1 if sub.is_addition else -1) for sub in subrooms
    )
    floor = max(0.0, length * width + subroom_net)
    ceiling = floor

    # Subrooms never change the perimeter
    perimeter = 2 * (length + width)
    wall = perimeter * height
    long_wall = max(length, width) * height
    short_wall = min(length, width) * height

    opening_area = sum(o.width_ft * o.height_ft * o.quantity for o in openings)
    opening_count = sum(o.quantity for o in openings)
    wall_net = max(0.0, wall - opening_area)

    roof_multiplier: float | None = None
    roof_sf: float | None = None
    roof_squares: float | None = None
    if zone.zone_type == ZoneType.ROOF:
        roof_multiplier = zone.pitch_multiplier or pitch_multiplier(zone.pitch)
        roof_sf = floor * roof_multiplier
        roof_squares = roof_sf / 100

    metrics = ZoneMetrics(
        floor_sf=round(floor, digits),
        ceiling_sf=round(ceiling, digits),
        wall_sf=round(wall, digits),
        opening_sf=round(opening_area, digits),
        opening_count=opening_count,
        wall_sf_net=round(wall_net, digits),
        walls_ceiling_sf=round(wall_net + ceiling, digits),
        perimeter_lf=round(perimeter, digits),
        long_wall_sf=round(long_wall, digits),
        short_wall_sf=round(short_wall, digits),
        subroom_net_sf=round(subroom_net, digits),
        height_ft=round(height, digits),
        default_height_used=default_height_used,
        length_ft=length,
        width_ft=width,
        roof_pitch_multiplier=round(roof_multiplier, 4) if roof_multiplier is not None else None,
        roof_sf=round(roof_sf, digits) if roof_sf is not None else None,
        roof_squares=round(roof_squares, digits) if roof_squares is not None else None,
        computed_from=MetricSource.DIMENSIONS,
    )

    logger.debug(
        "zone_metrics_computed",
        zone_id=zone.id,
        floor_sf=metrics.floor_sf,
        wall_sf_net=metrics.wall_sf_net,
        perimeter_lf=metrics.perimeter_lf,
        default_height_used=default_height_used,
    )
    return metrics


def get_metric_value(metrics: ZoneMetrics, alias: MetricAlias | str) -> float:
    """
    Resolve a metric alias against a metrics snapshot.

    Unknown alias strings resolve to 0 and log a warning. Catalog formulas
    never reach that path because their aliases are checked at load time.
    """
    if not isinstance(alias, MetricAlias):
        parsed = MetricAlias.parse(alias)
        if parsed is None:
            logger.warning("unknown_metric_alias", alias=alias)
            return 0.0
        alias = parsed

    value = getattr(metrics, METRIC_FIELDS[alias])
    return float(value) if value is not None else 0.0


def describe_metric(metrics: ZoneMetrics, alias: MetricAlias) -> str:
    """Plain-language derivation of a single metric."""
    value = get_metric_value(metrics, alias)
    fmt = format_number

    if not metrics.is_known:
        return f"{_METRIC_LABELS[alias]}: dimensions unknown = 0"

    length, width, height = metrics.length_ft, metrics.width_ft, metrics.height_ft

    if alias == MetricAlias.FLOOR_SF:
        text = f"Floor area: {fmt(length)}ft × {fmt(width)}ft"
        if metrics.subroom_net_sf > 0:
            text += f" + {fmt(metrics.subroom_net_sf)} SF subrooms"
        elif metrics.subroom_net_sf < 0:
            text += f" - {fmt(-metrics.subroom_net_sf)} SF cut-outs"
        return f"{text} = {fmt(value)} SF"
    if alias in (MetricAlias.CEIL_SF, MetricAlias.CEILING_SF):
        return f"Ceiling area: same as floor = {fmt(value)} SF"
    if alias == MetricAlias.WALL_SF:
        return (
            f"Gross wall area: {fmt(metrics.perimeter_lf)} LF perimeter × "
            f"{fmt(height)}ft height = {fmt(value)} SF"
        )
    if alias == MetricAlias.WALL_SF_NET:
        return (
            f"Net wall area: {fmt(metrics.wall_sf)} SF - {fmt(metrics.opening_sf)} SF "
            f"openings = {fmt(value)} SF"
        )
    if alias == MetricAlias.WALLS_CEILING_SF:
        return (
            f"Walls and ceiling: {fmt(metrics.wall_sf_net)} SF net walls + "
            f"{fmt(metrics.ceiling_sf)} SF ceiling = {fmt(value)} SF"
        )
    if alias == MetricAlias.PERIMETER_LF:
        return f"Perimeter: 2 × ({fmt(length)}ft + {fmt(width)}ft) = {fmt(value)} LF"
    if alias == MetricAlias.HEIGHT_FT:
        suffix = " (default)" if metrics.default_height_used else ""
        return f"Wall height: {fmt(value)} ft{suffix}"
    if alias == MetricAlias.LONG_WALL_SF:
        return f"Long wall: {fmt(max(length, width))}ft × {fmt(height)}ft = {fmt(value)} SF"
    if alias == MetricAlias.SHORT_WALL_SF:
        return f"Short wall: {fmt(min(length, width))}ft × {fmt(height)}ft = {fmt(value)} SF"
    if alias == MetricAlias.OPENING_SF:
        return f"Openings: {metrics.opening_count} opening(s) = {fmt(value)} SF"
    if alias == MetricAlias.ROOF_SF:
        multiplier = metrics.roof_pitch_multiplier or 1.0
        return (
            f"Roof area: {fmt(metrics.floor_sf)} SF × {fmt(multiplier)} pitch factor "
            f"= {fmt(value)} SF"
        )
    if alias == MetricAlias.ROOF_SQ:
        return f"Roof squares: {fmt(metrics.roof_sf or 0.0)} SF / 100 = {fmt(value)} SQ"
    return f"Pitch multiplier: {fmt(value)}"


_METRIC_LABELS: dict[MetricAlias, str] = {
    MetricAlias.FLOOR_SF: "Floor area",
    MetricAlias.CEIL_SF: "Ceiling area",
    MetricAlias.CEILING_SF: "Ceiling area",
    MetricAlias.WALL_SF: "Gross wall area",
    MetricAlias.WALL_SF_NET: "Net wall area",
    MetricAlias.WALLS_CEILING_SF: "Walls and ceiling",
    MetricAlias.PERIMETER_LF: "Perimeter",
    MetricAlias.HEIGHT_FT: "Wall height",
    MetricAlias.LONG_WALL_SF: "Long wall",
    MetricAlias.SHORT_WALL_SF: "Short wall",
    MetricAlias.OPENING_SF: "Openings",
    MetricAlias.ROOF_SF: "Roof area",
    MetricAlias.ROOF_SQ: "Roof squares",
    MetricAlias.PITCH_MULT: "Pitch multiplier",
}


def format_metrics_explanation(metrics: ZoneMetrics) -> str:
    """Multi-line summary of how a zone's metrics were derived."""
    if not metrics.is_known:
        return "Zone dimensions unknown; all metrics are zero."

    aliases = [
        MetricAlias.FLOOR_SF,
        MetricAlias.PERIMETER_LF,
        MetricAlias.HEIGHT_FT,
        MetricAlias.WALL_SF,
        MetricAlias.WALL_SF_NET,
        MetricAlias.WALLS_CEILING_SF,
    ]
    if metrics.roof_sf is not None:
        aliases.extend([MetricAlias.ROOF_SF, MetricAlias.ROOF_SQ])

    return "\n".join(describe_metric(metrics, alias) for alias in aliases)
