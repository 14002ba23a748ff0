"""Zone scorer: one TastingProfile in, a TastingAnalysisResult out.

Scores are a calibrated step function of how much of the oral window an
attribute dominated. Aftertaste presence never changes a score; it only
produces advisory boosts. The scorer never raises on degenerate timing:
an empty profile yields zero scores with every rated attribute flagged.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from tdsgrade.io.products import ProductConfig, cacao_mass_config
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.tasting.model import Mode, TastingProfile
from tdsgrade.tasting.normalize import normalize_profile
from tdsgrade.util.logging import get_logger, log_duration
from tdsgrade.util.math import clamp, round_half_up, safe_ratio

from .suggestions import kick_suggestions, quality_suggestions
from .types import AftertasteBoost, AttributeScoreResult, BoostDetails, TastingAnalysisResult, ZoneBreakdown
from .zones import AttributeZones, ZoneWindows, split_by_zone, zone_windows

logger = get_logger(__name__)

_EMPTY = AttributeZones()


def _pct(part: float, whole: float) -> float:
    return 100.0 * safe_ratio(part, whole)


def _r1(value: float) -> float:
    return round_half_up(value, 1)


def scored_attributes(config: ProductConfig, mode: Mode) -> Tuple[AttributeId, ...]:
    """Normal mode rates core and defect attributes; expert mode rates all of them."""
    if mode is Mode.EXPERT:
        return config.attributes
    return tuple(a for a in config.attributes if a in config.core or a in config.defect)


def score_attribute(
    attribute: AttributeId,
    spent: AttributeZones,
    windows: ZoneWindows,
    config: ProductConfig,
    mode: Mode,
    *,
    flag_all: bool = False,
) -> AttributeScoreResult:
    category = config.category_of(attribute)
    duration_percent = clamp(_pct(spent.melting, windows.oral_s), 0.0, 100.0)
    curve = config.calibration.curve_for(category, mode is Mode.EXPERT)
    score = curve(duration_percent)

    boost: Optional[BoostDetails] = None
    amount = config.boost_policy.amount(spent.finish, windows.finish_s)
    if amount > 0:
        boost = BoostDetails(amount=amount, duration=_r1(spent.finish))

    return AttributeScoreResult(
        score=score,
        duration_percent=_r1(duration_percent),
        category=category,
        is_flagged=spent.melting <= 0.0 and (flag_all or category == "core"),
        boost_details=boost,
        total_duration=_r1(spent.covered),
        is_present=spent.covered > config.zones.presence_min_s,
        zone_breakdown=ZoneBreakdown(
            attack=_r1(_pct(spent.attack, windows.attack_s)),
            body=_r1(_pct(spent.body, windows.body_s)),
            finish=_r1(_pct(spent.finish, windows.finish_s)),
        ),
    )


def _aggregated_core(
    attribute: AttributeId,
    zones: Dict[AttributeId, AttributeZones],
    windows: ZoneWindows,
    config: ProductConfig,
) -> AttributeScoreResult:
    """Expert core entry: own duration only, boost pooled from the attribute and its children."""
    own = zones.get(attribute, _EMPTY)
    duration_percent = clamp(_pct(own.melting, windows.oral_s), 0.0, 100.0)
    score = config.calibration.curve_for("core", True)(duration_percent)
    policy = config.boost_policy

    pooled = own.finish
    for child in config.children_of(attribute):
        if child != attribute:
            pooled += zones.get(child, _EMPTY).finish

    boost: Optional[BoostDetails] = None
    amount = policy.amount(pooled, windows.finish_s)
    if amount > 0:
        boost = BoostDetails(
            amount=amount,
            duration=_r1(pooled),
            kind="aggregated",
            reason="aftertaste" if policy.amount(own.finish, windows.finish_s) > 0 else "mixed",
        )
    return AttributeScoreResult(
        score=score,
        duration_percent=_r1(duration_percent),
        category="core",
        is_flagged=own.melting <= 0.0,
        boost_details=boost,
        total_duration=_r1(own.melting),
        is_present=own.melting > 0.0,
        original_score=score,
    )


def core_scores(
    scores: Dict[AttributeId, AttributeScoreResult],
    zones: Dict[AttributeId, AttributeZones],
    windows: ZoneWindows,
    config: ProductConfig,
    mode: Mode,
) -> Dict[AttributeId, AttributeScoreResult]:
    out: Dict[AttributeId, AttributeScoreResult] = {}
    for attr in config.core:
        if mode is Mode.EXPERT:
            out[attr] = _aggregated_core(attr, zones, windows, config)
        elif attr in scores:
            out[attr] = replace(scores[attr])
        else:
            out[attr] = AttributeScoreResult(score=0, duration_percent=0.0, category="core", is_flagged=True)
    return out


def _ranked(zones: Dict[AttributeId, AttributeZones]) -> Iterable[Tuple[AttributeId, AttributeZones]]:
    for attr in AttributeId:
        if attr in zones:
            yield attr, zones[attr]


def aftertaste_quality(
    dominant: Optional[AttributeId],
    strongest_percent: float,
    zones: Dict[AttributeId, AttributeZones],
    windows: ZoneWindows,
    config: ProductConfig,
) -> str:
    if dominant is not None and dominant in config.unpleasant_aftertaste:
        return "negative"
    if dominant is not None and dominant in config.pleasant_aftertaste:
        if zones[dominant].finish >= config.zones.aftertaste_persistence_s:
            return "positive"
    if windows.finish_s > config.zones.clean_finish_min_s and strongest_percent < config.zones.clean_finish_max_percent:
        return "positive"
    return "neutral"


def analyze_profile(profile: TastingProfile, config: Optional[ProductConfig] = None) -> TastingAnalysisResult:
    """Score one tasting against ``config`` (the built-in cacao product by default)."""
    with log_duration(logger, "Scored profile", profile_id=profile.id):
        return _analyze(profile, config or cacao_mass_config())


def _analyze(profile: TastingProfile, config: ProductConfig) -> TastingAnalysisResult:
    timing = normalize_profile(profile)
    windows = zone_windows(timing, config.zones.attack_fraction)
    zones = {attr: spent for attr, spent in split_by_zone(timing, windows).items() if attr in config.attributes}
    mode = profile.mode

    # with nothing captured every rated attribute is reported as unrated
    flag_all = not timing.events
    scores = {
        attr: score_attribute(attr, zones.get(attr, _EMPTY), windows, config, mode, flag_all=flag_all)
        for attr in scored_attributes(config, mode)
    }
    cores = core_scores(scores, zones, windows, config, mode)

    note_floor = config.zones.aroma_note_percent
    aroma_notes: List[AttributeId] = []
    max_attack = 0.0
    for attr, spent in _ranked(zones):
        share = _pct(spent.attack, windows.attack_s)
        if share > note_floor:
            aroma_notes.append(attr)
        max_attack = max(max_attack, share)
    aroma_intensity = config.aroma_ladder(max_attack, len(aroma_notes))

    dominant: Optional[AttributeId] = None
    max_finish = 0.0
    lingering = 0
    for attr, spent in _ranked(zones):
        share = _pct(spent.finish, windows.finish_s)
        if share > note_floor:
            lingering += 1
        if share > max_finish:
            max_finish = share
            dominant = attr
    aftertaste_intensity = config.aftertaste_ladder(max_finish, lingering)
    quality = aftertaste_quality(dominant, max_finish, zones, windows, config)

    defect_score = max((scores[a].score for a in config.defect if a in scores), default=0)
    modifier = config.quality.modifier(quality, aroma_intensity, defect_score)

    boosts: List[AftertasteBoost] = []
    for attr, result in scores.items():
        if mode is Mode.EXPERT and attr in cores:
            continue
        if result.boost_details is not None and result.boost_details.amount > 0:
            boosts.append(AftertasteBoost(attr, result.boost_details.amount))
    if mode is Mode.EXPERT:
        for attr, result in cores.items():
            if result.boost_details is not None and result.boost_details.amount > 0:
                boosts.append(AftertasteBoost(attr, result.boost_details.amount))

    return TastingAnalysisResult(
        scores=scores,
        core_scores=cores,
        aroma_intensity=aroma_intensity,
        aroma_percent=_r1(max_attack),
        aftertaste_intensity=aftertaste_intensity,
        aftertaste_percent=_r1(max_finish),
        aftertaste_quality=quality,
        dominant_aftertaste=dominant,
        quality_modifier=modifier,
        first_onset=timing.first_onset,
        attack_phase_duration=windows.attack_s,
        adjusted_swallow_time=windows.swallow,
        aroma_notes=aroma_notes,
        aftertaste_boosts=boosts,
        kick_suggestions=kick_suggestions(config.kick_rules, zones, windows),
        quality_suggestions=quality_suggestions(
            config.quality,
            zones,
            windows,
            mode=mode,
            defect_score=defect_score,
            aftertaste_quality=quality,
            aroma_intensity=aroma_intensity,
        ),
    )
