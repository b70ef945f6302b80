"""Dutching / arbitrage stake solver — the single source of truth for ARB PRO.

All functions here are **pure**: no I/O, no logging, no shared state.
Every call to :func:`calculate_arb` is a function of its arguments only,
so it is safe to call concurrently from any number of request handlers.

The solver runs five stages, each feeding only the next:

1. **Odds normalisation** — boost and freebet stripping
   (:func:`~backend.core.odds_math.final_odd`).
2. **Return-rate classification** — commission-adjusted effective odd
   (:func:`~backend.core.odds_math.effective_odd`).
3. **Role partitioning** — :func:`partition_houses` picks the anchor and
   splits the rest into participating and zeroing groups.
4. **Proportional stake solve** — :func:`solve_stakes` finds the
   real-money pool that lets every participating house match the
   anchor's return while zeroing houses only recover their share.
5. **Rounding & reconciliation** — :func:`reconcile` rounds stakes to a
   placeable increment and re-derives investment and profit from the
   rounded values.

The proportional solve
----------------------
Let ``R`` be the anchor's net return.  A participating house needs
``R / e_i`` (back, freebet) or ``R / (o_i − c_i)`` (lay) to return ``R``.
Zeroing houses must return the whole real-money pool ``T`` on their
outcome, i.e. stake ``T / e_j``.  Summing real-money exposure::

    T  =  F  +  Σ_participating x_i  +  T · Σ_zeroing 1 / e_j

    T  =  (F + Σ x_i) / (1 − Σ 1 / e_j)                          (1)

where ``F`` is the anchor's own real-money contribution and ``x_i`` is
each participating house's exposure (stake for back, liability for lay,
zero for freebet).  When the denominator of (1) collapses the solver
falls back to ``T = F + Σ x_i`` and flags the result.

Failure semantics
-----------------
Nothing here raises on numeric input.  Non-positive odds, empty input,
zero investment and a singular solve all degrade to zero stakes or a
zero ROI.  Callers read :attr:`ArbResult.is_arb` and
:attr:`ArbResult.total_invested` to decide what to show.

Run tests with::

    pytest tests/test_arb_calc.py -v
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from backend.core.calc_config import ZEROING_DENOMINATOR_FLOOR
from backend.core.odds_math import (
    BetKind,
    commission_factor,
    effective_odd,
    final_odd,
    lay_liability,
    lay_return_rate,
    round_to_step,
)

# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HouseInput:
    """One counterparty offering a price on one outcome.

    ``stake`` is only read for the anchor.  ``participates_in_profit``
    (the form's "distribution" toggle) set to ``False`` sizes the house to
    break even instead of sharing the equalised profit.
    """

    odd: float
    stake: float = 0.0
    commission_percent: float = 0.0
    increase_percent: float = 0.0
    is_freebet: bool = False
    is_lay: bool = False
    is_fixed: bool = False
    participates_in_profit: bool = True

    @property
    def kind(self) -> BetKind:
        return BetKind.from_flags(self.is_freebet, self.is_lay)


@dataclass(frozen=True)
class HouseResult:
    """Solver output for a single house, in input order."""

    final_odd: float
    effective_odd: float
    computed_stake: float
    liability: float
    profit_if_win: float


@dataclass(frozen=True)
class ArbResult:
    """Aggregate solver output.

    Attributes:
        target_return: Net return implied by the anchor stake.
        total_invested: Real money at risk after rounding (lay liability,
            back stake, nothing for freebets).
        results: One :class:`HouseResult` per input house, same order.
        min_profit: Worst-case profit over the valid outcomes.
        roi: ``min_profit / total_invested × 100``; 0 when nothing is
            invested.
        is_arb: ``roi >= 0``.
        anchor_index: Index of the house treated as anchor (-1 when empty).
        zeroing_anchor: The anchor opted out of profit distribution; the
            pool was taken as the anchor's return without a proportional
            solve.
        zeroing_fallback: The zeroing group consumed the whole pool and
            the un-scaled real-money sum was used.
    """

    target_return: float
    total_invested: float
    results: tuple[HouseResult, ...]
    min_profit: float
    roi: float
    is_arb: bool
    anchor_index: int = -1
    zeroing_anchor: bool = False
    zeroing_fallback: bool = False


@dataclass(frozen=True)
class PricedHouse:
    """A house after normalisation and classification (stages 1–2)."""

    house: HouseInput
    kind: BetKind
    final_odd: float
    effective_odd: float

    @property
    def is_valid(self) -> bool:
        return self.final_odd > 0.0


@dataclass(frozen=True)
class Partition:
    """Roles assigned by stage 3."""

    anchor_index: int
    fixed_net_return: float
    participating: tuple[int, ...]
    zeroing: tuple[int, ...]
    excluded: tuple[int, ...]


@dataclass(frozen=True)
class StakeSolution:
    """Idealised (unrounded) stakes from stage 4."""

    stakes: tuple[float, ...]
    total_stake: float
    zeroing_fallback: bool


EMPTY_RESULT = ArbResult(
    target_return=0.0,
    total_invested=0.0,
    results=(),
    min_profit=0.0,
    roi=0.0,
    is_arb=False,
)


# ---------------------------------------------------------------------------
# Stages 1–2: normalise and classify
# ---------------------------------------------------------------------------


def price_house(house: HouseInput) -> PricedHouse:
    """Attach the final and effective odd to a house."""
    kind = house.kind
    final = final_odd(house.odd, house.increase_percent, kind)
    return PricedHouse(
        house=house,
        kind=kind,
        final_odd=final,
        effective_odd=effective_odd(final, house.commission_percent, kind),
    )


def real_money_exposure(kind: BetKind, stake: float, odd: float) -> float:
    """Money actually put at risk by a bet of ``stake`` at quoted ``odd``.

    Back bets risk the stake, lay bets risk their liability and freebets
    risk nothing.
    """
    if kind is BetKind.FREEBET:
        return 0.0
    if kind is BetKind.LAY:
        return lay_liability(stake, odd)
    return stake


# ---------------------------------------------------------------------------
# Stage 3: roles
# ---------------------------------------------------------------------------


def select_anchor(houses: Sequence[HouseInput]) -> int:
    """Index of the first house flagged fixed, else 0."""
    for index, house in enumerate(houses):
        if house.is_fixed:
            return index
    return 0


def anchor_stake(anchor: PricedHouse) -> float:
    """The anchor's stake, or 0 when its odd is unusable."""
    return anchor.house.stake if anchor.is_valid else 0.0


def anchor_net_return(anchor: PricedHouse) -> float:
    """Return every participating house must match.

    Lay anchors use ``stake · (final − c/100)``; back and freebet anchors
    use ``stake · effective``.
    """
    stake = anchor_stake(anchor)
    if anchor.kind is BetKind.LAY:
        return stake * lay_return_rate(anchor.final_odd, anchor.house.commission_percent)
    return stake * anchor.effective_odd


def partition_houses(priced: Sequence[PricedHouse]) -> Partition:
    """Assign the anchor, participating, zeroing and excluded roles."""
    anchor_index = select_anchor([p.house for p in priced])
    participating: list[int] = []
    zeroing: list[int] = []
    excluded: list[int] = []

    for index, item in enumerate(priced):
        if index == anchor_index:
            continue
        if not item.is_valid:
            excluded.append(index)
        elif item.house.participates_in_profit:
            participating.append(index)
        else:
            zeroing.append(index)

    return Partition(
        anchor_index=anchor_index,
        fixed_net_return=anchor_net_return(priced[anchor_index]),
        participating=tuple(participating),
        zeroing=tuple(zeroing),
        excluded=tuple(excluded),
    )


# ---------------------------------------------------------------------------
# Stage 4: proportional solve
# ---------------------------------------------------------------------------


def stake_for_return(item: PricedHouse, target: float) -> float:
    """Stake that makes ``item`` return exactly ``target``.

    Returns 0 when the house's return rate is not positive.
    """
    if item.kind is BetKind.LAY:
        rate = lay_return_rate(item.final_odd, item.house.commission_percent)
    else:
        rate = item.effective_odd
    if rate <= 0.0:
        return 0.0
    return target / rate


def solve_stakes(
    priced: Sequence[PricedHouse],
    partition: Partition,
    *,
    zeroing_floor: float = ZEROING_DENOMINATOR_FLOOR,
) -> StakeSolution:
    """Solve equation (1) and derive every house's idealised stake."""
    target = partition.fixed_net_return
    stakes = [0.0] * len(priced)

    for index in partition.participating:
        stakes[index] = stake_for_return(priced[index], target)

    sum_participating = math.fsum(
        real_money_exposure(priced[i].kind, stakes[i], priced[i].house.odd)
        for i in partition.participating
    )

    anchor = priced[partition.anchor_index]
    fixed_stake = anchor_stake(anchor)
    fixed_contribution = real_money_exposure(anchor.kind, fixed_stake, anchor.house.odd)

    sum_inverse_zeroing = math.fsum(
        1.0 / priced[i].effective_odd
        for i in partition.zeroing
        if priced[i].effective_odd > 0.0
    )

    zeroing_fallback = False
    if not anchor.house.participates_in_profit:
        # Zeroing anchor: the pool is the anchor's own return.
        total_stake = target
    else:
        pool = fixed_contribution + sum_participating
        denominator = 1.0 - sum_inverse_zeroing
        if denominator > zeroing_floor:
            total_stake = pool / denominator
        else:
            total_stake = pool
            zeroing_fallback = bool(partition.zeroing)

    for index in partition.zeroing:
        item = priced[index]
        stakes[index] = total_stake / item.effective_odd if item.effective_odd > 0.0 else 0.0

    stakes[partition.anchor_index] = fixed_stake

    return StakeSolution(
        stakes=tuple(stakes),
        total_stake=total_stake,
        zeroing_fallback=zeroing_fallback,
    )


# ---------------------------------------------------------------------------
# Stage 5: rounding and reconciliation
# ---------------------------------------------------------------------------


def profit_if_win(
    item: PricedHouse,
    stake: float,
    liability: float,
    total_invested: float,
) -> float:
    """Net profit when ``item``'s outcome occurs, against actual investment."""
    if item.kind is BetKind.LAY:
        return (
            stake * commission_factor(item.house.commission_percent)
            - (total_invested - liability)
        )
    return stake * item.effective_odd - total_invested


def reconcile(
    priced: Sequence[PricedHouse],
    partition: Partition,
    solution: StakeSolution,
    rounding_step: float,
) -> ArbResult:
    """Round non-anchor stakes, then recompute investment and profit."""
    stakes = [
        stake if index == partition.anchor_index else round_to_step(stake, rounding_step)
        for index, stake in enumerate(solution.stakes)
    ]
    liabilities = [
        lay_liability(stake, item.house.odd) if item.kind is BetKind.LAY else 0.0
        for item, stake in zip(priced, stakes)
    ]
    total_invested = math.fsum(
        real_money_exposure(item.kind, stake, item.house.odd)
        for item, stake in zip(priced, stakes)
    )

    results = tuple(
        HouseResult(
            final_odd=item.final_odd,
            effective_odd=item.effective_odd,
            computed_stake=stake,
            liability=liability,
            profit_if_win=profit_if_win(item, stake, liability, total_invested),
        )
        for item, stake, liability in zip(priced, stakes, liabilities)
    )

    valid_profits = [
        result.profit_if_win
        for item, result in zip(priced, results)
        if item.is_valid
    ]
    min_profit = min(valid_profits) if valid_profits else 0.0
    roi = min_profit / total_invested * 100.0 if total_invested > 0.0 else 0.0

    return ArbResult(
        target_return=partition.fixed_net_return,
        total_invested=total_invested,
        results=results,
        min_profit=min_profit,
        roi=roi,
        is_arb=roi >= 0.0,
        anchor_index=partition.anchor_index,
        zeroing_anchor=not priced[partition.anchor_index].house.participates_in_profit,
        zeroing_fallback=solution.zeroing_fallback,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def calculate_arb(
    houses: Sequence[HouseInput],
    rounding_step: float,
    *,
    zeroing_floor: float = ZEROING_DENOMINATOR_FLOOR,
) -> ArbResult:
    """Compute dutching stakes, per-outcome profit and ROI.

    Args:
        houses: One :class:`HouseInput` per outcome, in display order.
            The first house with ``is_fixed`` is the anchor; house 0 is
            used when none is flagged.
        rounding_step: Stake increment for non-anchor houses.  ``<= 0``
            leaves the solver's stakes untouched.
        zeroing_floor: Smallest accepted denominator in equation (1).

    Returns:
        :class:`ArbResult`.  An empty ``houses`` yields
        :data:`EMPTY_RESULT`.

    Examples::

        calculate_arb(
            [HouseInput(odd=2.0, stake=100, is_fixed=True), HouseInput(odd=2.1)],
            0.01,
        )
        → total_invested ≈ 195.24, min_profit ≈ 4.76, roi ≈ 2.44, is_arb True
    """
    if not houses:
        return EMPTY_RESULT

    priced = [price_house(house) for house in houses]
    partition = partition_houses(priced)
    solution = solve_stakes(priced, partition, zeroing_floor=zeroing_floor)
    return reconcile(priced, partition, solution, rounding_step)
