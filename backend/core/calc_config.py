"""Solver configuration — every tunable constant of the calculator in one place.

:class:`CalcConfig` is a frozen dataclass.  The named constructor
:meth:`CalcConfig.default` returns the values the calculator ships with;
override single fields with :func:`dataclasses.replace`::

    from dataclasses import replace
    from backend.core.calc_config import CalcConfig

    cfg = replace(CalcConfig.default(), default_rounding_step=1.0)

Nothing here reads the environment.  ``backend.services.arb_service``
layers environment overrides on top of :meth:`CalcConfig.default`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

#: Stake increments offered by the calculator form (R$ 0,01 / 1,00 / 5,00).
ROUNDING_PRESETS: Final[tuple[float, ...]] = (0.01, 1.00, 5.00)

#: Smallest ``1 − Σ 1/effective_odd`` the zeroing solve accepts.  Below it
#: the zeroing group would consume the whole pool and the solver falls back
#: to the un-scaled real-money sum.
ZEROING_DENOMINATOR_FLOOR: Final[float] = 0.001


@dataclass(frozen=True)
class CalcConfig:
    """Immutable configuration bundle for the dutching calculator.

    Attributes:
        default_rounding_step: Stake increment applied when a request does
            not name one.  ``<= 0`` disables rounding.
        rounding_presets: Increments advertised to form clients.
        zeroing_denominator_floor: See :data:`ZEROING_DENOMINATOR_FLOOR`.
        max_houses: Upper bound on houses per request.  Plain IEEE-754
            accumulation is comfortable for 10–20 outcomes; the solver uses
            ``math.fsum`` regardless.
    """

    default_rounding_step: float
    rounding_presets: tuple[float, ...]
    zeroing_denominator_floor: float
    max_houses: int

    @classmethod
    def default(cls) -> CalcConfig:
        """Return the configuration the calculator ships with."""
        return cls(
            default_rounding_step=ROUNDING_PRESETS[0],
            rounding_presets=ROUNDING_PRESETS,
            zeroing_denominator_floor=ZEROING_DENOMINATOR_FLOOR,
            max_houses=20,
        )
