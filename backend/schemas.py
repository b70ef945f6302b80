"""
Pydantic request/response schemas for the ARB PRO API.

Form clients send decimals the way users type them ("2,10", "R$ 100,00"),
so numeric house fields are parsed with ``odds_math.parse_decimal`` before
range validation.  Range and anchor violations surface as HTTP 422.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from backend.core.odds_math import parse_decimal


# ---------------------------------------------------------------------------
# Calculation request
# ---------------------------------------------------------------------------

class HouseIn(BaseModel):
    """One house card from the calculator form."""

    label: Optional[str] = Field(
        None, max_length=60, description='Free-text tag, e.g. "Casa 1 (Promo)"'
    )

    odd: float = Field(..., ge=1.0, description="Quoted decimal odd")
    stake: float = Field(0.0, ge=0.0, description="Stake; only read for the anchor house")
    commission_percent: float = Field(
        0.0, ge=0.0, lt=100.0, description="Commission in percent (2.8 = 2.8%)"
    )
    increase_percent: float = Field(0.0, ge=0.0, description="Promotional odds boost in percent")

    is_freebet: bool = Field(False, description="Stake is a freebet, not real money")
    is_lay: bool = Field(False, description="Exchange lay bet")
    is_fixed: bool = Field(False, description="Anchor house whose stake is given")
    participates_in_profit: bool = Field(
        True,
        validation_alias=AliasChoices("participates_in_profit", "distribution"),
        description="False = size this house to break even only",
    )

    @field_validator("odd", "stake", "commission_percent", "increase_percent", mode="before")
    @classmethod
    def parse_form_decimal(cls, v):
        if isinstance(v, str):
            return parse_decimal(v)
        return v

    model_config = {"allow_inf_nan": False}


class ArbCalculateRequest(BaseModel):
    """
    Payload for POST /api/arb/calculate and POST /api/arb/export.

    ``rounding_step`` defaults to the server's configured step; ``0``
    disables rounding.
    """

    houses: list[HouseIn] = Field(..., min_length=1)
    rounding_step: Optional[float] = Field(
        None, description="Stake increment for solved stakes (0.01, 1.00, 5.00...)"
    )

    @field_validator("rounding_step", mode="before")
    @classmethod
    def parse_rounding_step(cls, v):
        if isinstance(v, str):
            return parse_decimal(v)
        return v

    @model_validator(mode="after")
    def single_anchor(self) -> "ArbCalculateRequest":
        fixed = [i for i, h in enumerate(self.houses) if h.is_fixed]
        if len(fixed) > 1:
            raise ValueError(
                f"Only one house can have a fixed stake; houses {fixed} are all fixed."
            )
        return self

    model_config = {
        "allow_inf_nan": False,
        "json_schema_extra": {
            "example": {
                "houses": [
                    {"label": "Casa 1 (Promo)", "odd": "2,00", "stake": "100", "is_fixed": True},
                    {"label": "Casa 2", "odd": 2.10},
                ],
                "rounding_step": 0.01,
            }
        }
    }


# ---------------------------------------------------------------------------
# Calculation response
# ---------------------------------------------------------------------------

class HouseResultOut(BaseModel):
    """Solved row for a single house, same order as the request."""
    index: int
    label: Optional[str]
    kind: Literal["back", "lay", "freebet"]
    is_anchor: bool
    excluded: bool
    final_odd: float
    effective_odd: float
    computed_stake: float
    liability: float
    profit_if_win: float


class ArbCalculateResponse(BaseModel):
    """Response schema for POST /api/arb/calculate."""
    target_return: float
    total_invested: float
    min_profit: float
    roi: float
    is_arb: bool
    rounding_step: float
    anchor_index: int
    zeroing_anchor: bool
    zeroing_fallback: bool
    results: list[HouseResultOut]


class ArbConfigResponse(BaseModel):
    """Calculator defaults for form clients."""
    default_rounding_step: float
    rounding_presets: list[float]
    max_houses: int
