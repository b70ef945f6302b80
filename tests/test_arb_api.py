"""
Tests for the ARB PRO HTTP endpoints
Run with: pytest tests/test_arb_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from backend.main import app


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


SUREBET = {
    "houses": [
        {"label": "Casa 1 (Promo)", "odd": "2,00", "stake": "100,00", "is_fixed": True},
        {"label": "Casa 2", "odd": 2.10},
    ],
    "rounding_step": 0.01,
}


class TestPublicEndpoints:
    """Banner, health and config"""

    def test_root(self, client):
        body = client.get("/").json()
        assert body["status"] == "operational"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_config(self, client):
        body = client.get("/api/arb/config").json()
        assert body["rounding_presets"] == [0.01, 1.0, 5.0]


class TestCalculate:
    """POST /api/arb/calculate"""

    def test_surebet(self, client):
        r = client.post("/api/arb/calculate", json=SUREBET)
        assert r.status_code == 200

        body = r.json()
        assert body["total_invested"] == pytest.approx(195.24)
        assert body["min_profit"] == pytest.approx(4.76)
        assert body["is_arb"] is True
        assert len(body["results"]) == 2
        assert body["results"][1]["computed_stake"] == pytest.approx(95.24)

    def test_lay_house(self, client):
        payload = {
            "houses": [
                {"odd": 3.0, "stake": 100, "is_fixed": True},
                {"odd": 3.1, "commission_percent": 5, "is_lay": True},
            ],
        }
        body = client.post("/api/arb/calculate", json=payload).json()

        lay = body["results"][1]
        assert lay["kind"] == "lay"
        assert lay["liability"] == pytest.approx(lay["computed_stake"] * 2.1)
        assert body["is_arb"] is False

    def test_two_anchors_rejected(self, client):
        payload = {
            "houses": [
                {"odd": 2.0, "stake": 100, "is_fixed": True},
                {"odd": 2.1, "stake": 50, "is_fixed": True},
            ],
        }
        assert client.post("/api/arb/calculate", json=payload).status_code == 422

    def test_empty_houses_rejected(self, client):
        r = client.post("/api/arb/calculate", json={"houses": []})
        assert r.status_code == 422

    @pytest.mark.parametrize("house", [
        {"odd": 0.5},
        {"odd": 2.0, "stake": -1},
        {"odd": 2.0, "commission_percent": 100},
        {"odd": "abc.1.2"},
    ])
    def test_bad_house_rejected(self, client, house):
        payload = {"houses": [{"odd": 2.0, "stake": 100, "is_fixed": True}, house]}
        assert client.post("/api/arb/calculate", json=payload).status_code == 422

    def test_tiny_rounding_step(self, client):
        payload = {**SUREBET, "rounding_step": 1e-320}
        r = client.post("/api/arb/calculate", json=payload)

        assert r.status_code == 200
        assert r.json()["results"][1]["computed_stake"] == pytest.approx(200.0 / 2.1)

    @pytest.mark.parametrize("body", [
        '{"houses": [{"odd": 2.0, "stake": 100, "is_fixed": true}, {"odd": 2.1}],'
        ' "rounding_step": 1e400}',
        '{"houses": [{"odd": 2.0, "stake": 1e400, "is_fixed": true}, {"odd": 2.1}]}',
    ])
    def test_infinite_numbers_rejected(self, client, body):
        r = client.post(
            "/api/arb/calculate",
            content=body,
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 422


class TestExport:
    """POST /api/arb/export"""

    def test_csv(self, client):
        r = client.post("/api/arb/export", json=SUREBET)

        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        assert "Casa 1 (Promo)" in r.text
        assert r.text.splitlines()[0].startswith("n,house")
