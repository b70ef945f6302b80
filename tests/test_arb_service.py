"""Tests for the ARB PRO calculation service and CSV export."""

import logging
from dataclasses import replace

import pytest

from backend.core.calc_config import CalcConfig, ROUNDING_PRESETS
from backend.schemas import ArbCalculateRequest, HouseIn
from backend.services.arb_export import EXPORT_COLUMNS, results_to_csv, results_to_dataframe
from backend.services.arb_service import (
    config_response,
    house_from_schema,
    load_calc_config,
    run_calculation,
    to_response,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _request(rounding_step=None, **extra):
    houses = [
        {"label": "Casa 1 (Promo)", "odd": 2.0, "stake": 100, "is_fixed": True},
        {"label": "Casa 2", "odd": 2.1},
    ]
    return ArbCalculateRequest(houses=houses, rounding_step=rounding_step, **extra)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def test_default_config():
    cfg = CalcConfig.default()
    assert cfg.default_rounding_step == 0.01
    assert cfg.rounding_presets == ROUNDING_PRESETS
    assert cfg.zeroing_denominator_floor == 0.001


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ARB_DEFAULT_ROUNDING_STEP", "5")
    monkeypatch.setenv("ARB_MAX_HOUSES", "4")

    cfg = load_calc_config()

    assert cfg.default_rounding_step == 5.0
    assert cfg.max_houses == 4
    assert cfg.rounding_presets == ROUNDING_PRESETS


def test_config_response():
    resp = config_response(CalcConfig.default())
    assert resp.rounding_presets == [0.01, 1.0, 5.0]
    assert resp.max_houses == 20


# ---------------------------------------------------------------------------
# Calculation
# ---------------------------------------------------------------------------

def test_house_from_schema_maps_distribution_alias():
    house = HouseIn.model_validate({"odd": "3,5", "distribution": False, "is_lay": True})
    solver_house = house_from_schema(house)

    assert solver_house.odd == pytest.approx(3.5)
    assert not solver_house.participates_in_profit
    assert solver_house.is_lay


def test_uses_configured_rounding_step():
    cfg = replace(CalcConfig.default(), default_rounding_step=5.0)
    calc = run_calculation(_request(), cfg)

    assert calc.rounding_step == 5.0
    assert calc.result.results[1].computed_stake == pytest.approx(95.0)


def test_request_rounding_step_wins():
    cfg = replace(CalcConfig.default(), default_rounding_step=5.0)
    calc = run_calculation(_request(rounding_step=0.01), cfg)

    assert calc.rounding_step == 0.01
    assert calc.result.results[1].computed_stake == pytest.approx(95.24)


def test_too_many_houses():
    cfg = replace(CalcConfig.default(), max_houses=1)
    with pytest.raises(ValueError, match="at most 1"):
        run_calculation(_request(), cfg)


def test_warns_without_anchor(caplog):
    req = ArbCalculateRequest(houses=[{"odd": 2.0, "stake": 100}, {"odd": 2.1}])
    with caplog.at_level(logging.WARNING, logger="backend.services.arb_service"):
        run_calculation(req, CalcConfig.default())

    assert "No house flagged fixed" in caplog.text


def test_warns_on_zeroing_anchor(caplog):
    req = ArbCalculateRequest(houses=[
        {"odd": 2.0, "stake": 100, "is_fixed": True, "distribution": False},
        {"odd": 2.5},
    ])
    with caplog.at_level(logging.WARNING, logger="backend.services.arb_service"):
        calc = run_calculation(req, CalcConfig.default())

    assert calc.result.zeroing_anchor
    assert "does not participate in profit" in caplog.text


def test_to_response():
    calc = run_calculation(_request(rounding_step=0.01), CalcConfig.default())
    resp = to_response(calc)

    assert resp.is_arb
    assert resp.total_invested == pytest.approx(195.24)
    assert resp.anchor_index == 0
    assert [r.is_anchor for r in resp.results] == [True, False]
    assert resp.results[1].label == "Casa 2"
    assert resp.results[1].kind == "back"
    assert not resp.results[1].excluded


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def test_dataframe_shape():
    calc = run_calculation(_request(rounding_step=0.01), CalcConfig.default())
    df = results_to_dataframe(calc)

    assert list(df.columns) == EXPORT_COLUMNS
    assert list(df.index) == [1, 2]
    assert df.loc[2, "stake"] == pytest.approx(95.24)
    assert bool(df.loc[1, "is_anchor"])


def test_dataframe_default_label():
    req = ArbCalculateRequest(houses=[{"odd": 2.0, "stake": 100}, {"odd": 2.1}])
    df = results_to_dataframe(run_calculation(req, CalcConfig.default()))

    assert df.loc[1, "house"] == "Casa 1"


def test_csv_has_totals_row():
    calc = run_calculation(_request(rounding_step=0.01), CalcConfig.default())
    lines = results_to_csv(calc).strip().splitlines()

    assert lines[0].startswith("n,house,kind")
    assert len(lines) == 4
    assert lines[-1].startswith("total,TOTAL")
    assert "195.2400" in lines[-1]
