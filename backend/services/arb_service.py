"""
ARB PRO calculation service.

Bridges the HTTP schemas and the pure solver in ``backend.core.arb_calc``:

    1. Configuration — environment overrides on top of CalcConfig.default().
    2. Conversion — form houses (HouseIn) to solver houses (HouseInput).
    3. Calculation — runs the solver and logs degenerate configurations
       the solver absorbs silently (no anchor flagged, zeroing anchor,
       zeroing group consuming the pool, nothing invested).
    4. Presentation — ArbResult to ArbCalculateResponse.
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import List, Optional

from dotenv import load_dotenv

from backend.core.arb_calc import ArbResult, HouseInput, calculate_arb
from backend.core.calc_config import CalcConfig
from backend.schemas import (
    ArbCalculateRequest,
    ArbCalculateResponse,
    ArbConfigResponse,
    HouseIn,
    HouseResultOut,
)

load_dotenv()

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def load_calc_config() -> CalcConfig:
    """Build the calculator config from the environment."""
    cfg = CalcConfig.default()
    return replace(
        cfg,
        default_rounding_step=float(
            os.getenv("ARB_DEFAULT_ROUNDING_STEP", str(cfg.default_rounding_step))
        ),
        max_houses=int(os.getenv("ARB_MAX_HOUSES", str(cfg.max_houses))),
    )


_calc_config: Optional[CalcConfig] = None


def get_calc_config() -> CalcConfig:
    global _calc_config
    if _calc_config is None:
        _calc_config = load_calc_config()
        logger.info(
            "Calculator config: rounding step %.2f, max %d houses",
            _calc_config.default_rounding_step,
            _calc_config.max_houses,
        )
    return _calc_config


def config_response(config: Optional[CalcConfig] = None) -> ArbConfigResponse:
    cfg = config or get_calc_config()
    return ArbConfigResponse(
        default_rounding_step=cfg.default_rounding_step,
        rounding_presets=list(cfg.rounding_presets),
        max_houses=cfg.max_houses,
    )


# ---------------------------------------------------------------------------
# Calculation
# ---------------------------------------------------------------------------

@dataclass
class ArbCalculation:
    """A solved request: solver inputs, labels and result."""

    houses: List[HouseInput]
    labels: List[Optional[str]]
    rounding_step: float
    result: ArbResult


def house_from_schema(house: HouseIn) -> HouseInput:
    return HouseInput(
        odd=house.odd,
        stake=house.stake,
        commission_percent=house.commission_percent,
        increase_percent=house.increase_percent,
        is_freebet=house.is_freebet,
        is_lay=house.is_lay,
        is_fixed=house.is_fixed,
        participates_in_profit=house.participates_in_profit,
    )


def run_calculation(
    request: ArbCalculateRequest,
    config: Optional[CalcConfig] = None,
) -> ArbCalculation:
    """
    Solve a calculator request.

    Raises:
        ValueError: If the request has more houses than the config allows.
    """
    cfg = config or get_calc_config()

    if len(request.houses) > cfg.max_houses:
        raise ValueError(
            f"{len(request.houses)} houses submitted; at most {cfg.max_houses} are allowed."
        )

    rounding_step = (
        request.rounding_step
        if request.rounding_step is not None
        else cfg.default_rounding_step
    )
    houses = [house_from_schema(h) for h in request.houses]

    if not any(h.is_fixed for h in houses):
        logger.warning("No house flagged fixed; using house 0 as anchor")

    result = calculate_arb(
        houses,
        rounding_step,
        zeroing_floor=cfg.zeroing_denominator_floor,
    )

    if result.zeroing_anchor:
        logger.warning(
            "Anchor house %d does not participate in profit; "
            "pool taken as its return (%.2f) without a proportional solve",
            result.anchor_index,
            result.target_return,
        )
    if result.zeroing_fallback:
        logger.warning(
            "Zeroing houses consume the whole stake pool; fell back to un-scaled sum"
        )
    if result.total_invested == 0.0:
        logger.warning("No real money invested; ROI reported as 0")

    for i, row in enumerate(result.results):
        logger.debug(
            "House %d: final %.4f eff %.4f stake %.2f liability %.2f profit %.2f",
            i, row.final_odd, row.effective_odd, row.computed_stake,
            row.liability, row.profit_if_win,
        )

    logger.info(
        "Arb calculated: %d houses, invested %.2f, min profit %.2f, ROI %.2f%% (%s)",
        len(houses),
        result.total_invested,
        result.min_profit,
        result.roi,
        "ARB" if result.is_arb else "no arb",
    )

    return ArbCalculation(
        houses=houses,
        labels=[h.label for h in request.houses],
        rounding_step=rounding_step,
        result=result,
    )


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------

def to_response(calc: ArbCalculation) -> ArbCalculateResponse:
    result = calc.result
    rows = [
        HouseResultOut(
            index=i,
            label=calc.labels[i],
            kind=house.kind.value,
            is_anchor=i == result.anchor_index,
            excluded=row.final_odd <= 0.0,
            final_odd=row.final_odd,
            effective_odd=row.effective_odd,
            computed_stake=row.computed_stake,
            liability=row.liability,
            profit_if_win=row.profit_if_win,
        )
        for i, (house, row) in enumerate(zip(calc.houses, result.results))
    ]
    return ArbCalculateResponse(
        target_return=result.target_return,
        total_invested=result.total_invested,
        min_profit=result.min_profit,
        roi=result.roi,
        is_arb=result.is_arb,
        rounding_step=calc.rounding_step,
        anchor_index=result.anchor_index,
        zeroing_anchor=result.zeroing_anchor,
        zeroing_fallback=result.zeroing_fallback,
        results=rows,
    )
