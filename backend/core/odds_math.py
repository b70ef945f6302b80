"""Per-bet odds mathematics for the dutching solver.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The pillars exposed are:

1. **Bet classification** — :class:`BetKind` closes the set of bet
   mechanics (back, lay, freebet) the solver understands.
2. **Odds normalisation** — promotional boost and freebet stripping.
3. **Return rates** — commission-adjusted "effective odd" per bet kind.
4. **Stake utilities** — lay liability, half-up rounding to a stake
   increment, and tolerant decimal parsing for form input.

Design decisions
----------------
* Odds are decimal (European) throughout.  The quoted price includes the
  returned stake, so a 2.10 back bet returns 2.10 per unit staked.
* Freebet takes precedence over lay when both flags are set: a freebet
  stake is never real money, so it cannot carry exchange liability.
* Lay commission is **not** folded into the effective odd.  The solver
  applies it directly inside the lay equations; the lay effective odd is
  only consumed by zeroing-group weights.
* Rounding is half-up (``floor(x / step + 0.5)``), not Python's banker's
  rounding, so a stake of 95.245 at a 0.01 step becomes 95.25.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import enum
import math
import re
from typing import Final

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Percent scale used for commission and boost inputs (2.8 means 2.8 %).
_PERCENT: Final[float] = 100.0

#: Characters stripped from form input before decimal parsing: currency
#: symbols, whitespace and anything that is not a digit, sign or separator.
_NON_NUMERIC: Final[re.Pattern[str]] = re.compile(r"[^\d,.\-]")


class BetKind(str, enum.Enum):
    """Closed set of bet mechanics handled by the solver."""

    BACK = "back"
    LAY = "lay"
    FREEBET = "freebet"

    @classmethod
    def from_flags(cls, is_freebet: bool, is_lay: bool) -> BetKind:
        """Classify a house from its form flags.

        Examples::

            BetKind.from_flags(False, False) → BetKind.BACK
            BetKind.from_flags(False, True)  → BetKind.LAY
            BetKind.from_flags(True,  True)  → BetKind.FREEBET
        """
        if is_freebet:
            return cls.FREEBET
        if is_lay:
            return cls.LAY
        return cls.BACK


# ---------------------------------------------------------------------------
# Odds normalisation
# ---------------------------------------------------------------------------


def boosted_odd(odd: float, increase_percent: float) -> float:
    """Apply a promotional boost to the profit part of a decimal odd.

    A boost of ``p`` percent scales only the winnings portion of the
    price, never the returned stake::

        b = odd + (odd − 1) · p / 100

    Args:
        odd: Quoted decimal odd.
        increase_percent: Boost in percent.  Values ``<= 0`` leave the odd
            unchanged, as does an odd ``<= 1`` (no winnings to boost).

    Returns:
        The boosted odd.

    Examples::

        boosted_odd(2.00, 25.0) → 2.25
        boosted_odd(3.00,  0.0) → 3.00
        boosted_odd(1.00, 50.0) → 1.00
    """
    if increase_percent > 0.0 and odd > 1.0:
        return odd + (odd - 1.0) * increase_percent / _PERCENT
    return odd


def final_odd(odd: float, increase_percent: float, kind: BetKind) -> float:
    """Usable odd for the later stages.

    Freebets pay net winnings only, so the stake-returned unit is stripped
    and the result is floored at zero.  Back and lay odds pass through
    unfloored; a value ``<= 0`` marks the house as invalid downstream.

    Examples::

        final_odd(3.0, 0.0, BetKind.FREEBET) → 2.0
        final_odd(0.5, 0.0, BetKind.FREEBET) → 0.0
        final_odd(0.0, 0.0, BetKind.BACK)    → 0.0
    """
    boosted = boosted_odd(odd, increase_percent)
    if kind is BetKind.FREEBET:
        return max(boosted - 1.0, 0.0)
    return boosted


# ---------------------------------------------------------------------------
# Return rates
# ---------------------------------------------------------------------------


def commission_factor(commission_percent: float) -> float:
    """Share of winnings retained after commission (``1 − c/100``)."""
    return 1.0 - commission_percent / _PERCENT


def effective_odd(final: float, commission_percent: float, kind: BetKind) -> float:
    """Net return per unit of stake under the bet kind's commission rule.

    * Freebet: ``final · (1 − c/100)`` — every unit returned is winnings.
    * Lay:     ``final`` — placeholder; lay commission lives in the
      solver's lay equations.
    * Back:    ``1 + (final − 1) · (1 − c/100)`` — the stake comes back
      untaxed, only the profit portion is charged.

    Examples::

        effective_odd(2.0, 5.0, BetKind.BACK)    → 1.95
        effective_odd(2.0, 5.0, BetKind.FREEBET) → 1.90
        effective_odd(3.1, 5.0, BetKind.LAY)     → 3.10
    """
    if kind is BetKind.FREEBET:
        return final * commission_factor(commission_percent)
    if kind is BetKind.LAY:
        return final
    return 1.0 + (final - 1.0) * commission_factor(commission_percent)


def lay_return_rate(final: float, commission_percent: float) -> float:
    """Return rate used by the lay equations (``final − c/100``)."""
    return final - commission_percent / _PERCENT


# ---------------------------------------------------------------------------
# Stake utilities
# ---------------------------------------------------------------------------


def lay_liability(stake: float, odd: float) -> float:
    """Exchange exposure of a lay bet: ``stake · max(odd − 1, 0)``.

    Examples::

        lay_liability(100.0, 3.1) → 210.0
        lay_liability(100.0, 0.9) →   0.0
    """
    return stake * max(odd - 1.0, 0.0)


def round_to_step(value: float, step: float) -> float:
    """Round ``value`` half-up to the nearest multiple of ``step``.

    Args:
        value: Stake to round.
        step: Stake increment (e.g. 0.01, 1.00, 5.00).  ``step <= 0``
            disables rounding and returns ``value`` unchanged.
            A step so small (or a value so large) that ``value / step`` is
            not finite also returns ``value`` unchanged.

    Examples::

        round_to_step(95.238, 0.01) →  95.24
        round_to_step(97.5,   5.0)  → 100.0
        round_to_step(95.238, 0.0)  →  95.238
    """
    if step <= 0.0:
        return value
    quotient = value / step
    if not math.isfinite(quotient):
        return value
    return math.floor(quotient + 0.5) * step


def parse_decimal(raw: str | float | int | None) -> float:
    """Parse a decimal typed into a form, accepting Brazilian formatting.

    Currency symbols and spaces are dropped.  When both ``.`` and ``,``
    appear, the right-most one is the decimal separator and the other is a
    thousands separator; a lone ``,`` is a decimal comma.  A lone ``.``
    is always a decimal point, so ``"1.000"`` parses as ``1.0``, not one
    thousand; type ``"1.000,00"`` for the latter.

    Args:
        raw: User input.  Numbers pass through as ``float``; ``None`` and
            blank strings parse as ``0.0``.

    Returns:
        The parsed value.

    Raises:
        ValueError: If the cleaned string is not a number.

    Examples::

        parse_decimal("2,10")        →    2.1
        parse_decimal("R$ 1.234,56") → 1234.56
        parse_decimal("1,234.56")    → 1234.56
        parse_decimal("")            →    0.0
    """
    if raw is None:
        return 0.0
    if isinstance(raw, (int, float)):
        return float(raw)

    cleaned = _NON_NUMERIC.sub("", raw)
    if not cleaned:
        return 0.0

    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    else:
        cleaned = cleaned.replace(",", ".")

    try:
        return float(cleaned)
    except ValueError:
        raise ValueError(f"Cannot parse {raw!r} as a decimal number.") from None
