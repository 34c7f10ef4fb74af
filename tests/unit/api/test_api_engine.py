from fastapi.testclient import TestClient

from src.api.main import app

client = TestClient(app)


def test_aggregate_reference_example():
    response = client.post(
        "/metrics/aggregate",
        json={
            "accounts": [{"balance": 1000}],
            "incomes": [{"amount": 2000, "frequency": "monthly"}],
            "expenses": [{"amount": 1500, "frequency": "monthly"}],
        },
    )

    assert response.status_code == 200
    assert response.json()["monthly_savings"] == "500.00"


def test_aggregate_treats_malformed_amounts_as_zero():
    response = client.post(
        "/metrics/aggregate",
        json={
            "accounts": [{"balance": "abc"}, {"balance": "12.5"}],
            "incomes": [{"amount": None, "frequency": "monthly"}],
        },
    )

    assert response.status_code == 200
    assert response.json()["total_balance"] == "12.50"
    assert response.json()["monthly_income"] == "0.00"


def test_aggregate_rejects_unknown_frequency():
    response = client.post(
        "/metrics/aggregate",
        json={"incomes": [{"amount": 10, "frequency": "weekly"}]},
    )

    assert response.status_code == 422
    assert response.json()["detail"].startswith("INVALID_ENUM_VALUE: frequency=")


def test_simulate_negative_savings_leads_with_expense_warning():
    response = client.post(
        "/recommendations/simulate",
        json={
            "profile": {"risk_tolerance": "aggressive", "investment_horizon": "long", "age": 30},
            "metrics": {
                "total_balance": "500",
                "monthly_income": "1300",
                "monthly_expenses": "1500",
            },
        },
    )

    body = response.json()
    assert response.status_code == 200
    assert body["triggered_rules"][0] == "NEGATIVE_SAVINGS"
    assert body["allocation"] == {
        "cash": 5,
        "bonds": 10,
        "equities": 65,
        "real_estate": 10,
        "alternatives": 10,
    }


def test_simulate_incomplete_profile_is_conflict():
    response = client.post(
        "/recommendations/simulate",
        json={"profile": {"risk_tolerance": "moderate"}, "metrics": {}},
    )
    assert response.status_code == 409


def test_simulate_rejects_inconsistent_metrics():
    response = client.post(
        "/recommendations/simulate",
        json={
            "profile": {"risk_tolerance": "moderate", "investment_horizon": "long"},
            "metrics": {
                "monthly_income": "2000",
                "monthly_expenses": "1500",
                "monthly_savings": "900",
            },
        },
    )
    assert response.status_code == 422


def test_simulate_rejects_unknown_horizon():
    response = client.post(
        "/recommendations/simulate",
        json={
            "profile": {"risk_tolerance": "moderate", "investment_horizon": "forever"},
            "metrics": {},
        },
    )
    assert response.status_code == 422


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


def test_aggregate_sums_beyond_default_decimal_precision():
    huge = "9" * 26
    response = client.post(
        "/metrics/aggregate",
        json={"accounts": [{"balance": huge}, {"balance": huge}]},
    )

    assert response.status_code == 200
    assert response.json()["total_balance"] == "1" + "9" * 25 + "8.00"


def test_aggregate_sums_sub_cent_amounts_before_rounding():
    response = client.post(
        "/metrics/aggregate",
        json={"accounts": [{"balance": "0.005"}, {"balance": "0.005"}]},
    )

    assert response.status_code == 200
    assert response.json()["total_balance"] == "0.01"
