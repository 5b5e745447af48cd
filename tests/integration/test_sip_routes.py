from datetime import date
from decimal import Decimal

import pytest

from sip_engine.infrastructure.db.models import MutualFundPriceModel


async def _add_price(db_session, symbol="SBIBLUE", price="50"):
    db_session.add(
        MutualFundPriceModel(
            trading_symbol=symbol,
            amc="SBI Mutual Fund",
            name="SBI Bluechip Fund",
            scheme_type="Equity",
            plan="Direct",
            last_price=Decimal(price),
            last_price_date=date(2024, 2, 29),
        )
    )
    await db_session.commit()


async def _create_sip(client, **overrides):
    payload = {
        "user_id": "user-1",
        "trading_symbol": "SBIBLUE",
        "scheme_name": "SBI Bluechip Fund",
        "amount": "5000",
        "frequency": "monthly",
        "start_date": "2024-02-01",
    }
    payload.update(overrides)
    return await client.post("/api/v1/sip", json=payload)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_sip_seeds_next_execution_date(client):
    resp = await _create_sip(client, frequency="quarterly", start_date="2024-01-31")

    assert resp.status_code == 201
    body = resp.json()
    assert body["next_execution_date"] == "2024-04-30"
    assert body["frequency"] == "quarterly"
    assert body["active"] is True

    listed = await client.get("/api/v1/sip", params={"user_id": "user-1"})
    assert [s["id"] for s in listed.json()] == [body["id"]]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_sip_rejects_bad_input(client):
    resp = await _create_sip(client, frequency="weekly")
    assert resp.status_code == 422

    resp = await _create_sip(client, amount="0")
    assert resp.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_execute_returns_batch_report(client, db_session):
    await _add_price(db_session)
    created = (await _create_sip(client)).json()

    resp = await client.post("/api/v1/sip/execute", json={"run_date": "2024-03-01"})

    assert resp.status_code == 200
    report = resp.json()
    assert report["run_date"] == "2024-03-01"
    assert report["executed"] == 1
    assert report["failed"] == 0
    detail = report["details"][0]
    assert detail["sip_id"] == created["id"]
    assert detail["status"] == "executed"
    assert Decimal(detail["execution"]["units"]) == Decimal("100")

    # Same day again: nothing due
    rerun = await client.post("/api/v1/sip/execute", json={"run_date": "2024-03-01"})
    assert rerun.json()["executed"] == 0
    assert rerun.json()["details"] == []

    history = await client.get("/api/v1/sip/executions", params={"user_id": "user-1"})
    assert history.status_code == 200
    records = history.json()
    assert len(records) == 1
    assert records[0]["status"] == "executed"
    assert records[0]["holding_id"] is not None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_execute_reports_failures_without_error_status(client):
    await _create_sip(client, trading_symbol="XYZ")

    resp = await client.post("/api/v1/sip/execute", json={"run_date": "2024-03-01"})

    assert resp.status_code == 200
    report = resp.json()
    assert report["failed"] == 1
    assert report["details"][0]["status"] == "failed"
    assert "Price data not found for XYZ" in report["details"][0]["error"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_paused_sip_is_not_executed(client, db_session):
    await _add_price(db_session)
    created = (await _create_sip(client)).json()

    resp = await client.patch(
        f"/api/v1/sip/{created['id']}/active",
        json={"user_id": "user-1", "active": False},
    )
    assert resp.status_code == 200
    assert resp.json()["active"] is False

    report = (await client.post("/api/v1/sip/execute", json={"run_date": "2024-03-01"})).json()
    assert report["executed"] == 0

    other_user = await client.patch(
        f"/api/v1/sip/{created['id']}/active",
        json={"user_id": "someone-else", "active": True},
    )
    assert other_user.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_holdings_are_valued_at_latest_nav(client, db_session):
    await _add_price(db_session)
    await _create_sip(client)
    await client.post("/api/v1/sip/execute", json={"run_date": "2024-03-01"})

    price = await db_session.get(MutualFundPriceModel, 1)
    price.last_price = Decimal("55")
    await db_session.commit()

    resp = await client.get("/api/v1/holdings", params={"user_id": "user-1"})

    assert resp.status_code == 200
    holdings = resp.json()
    assert len(holdings) == 1
    holding = holdings[0]
    assert Decimal(holding["quantity"]) == Decimal("100")
    assert Decimal(holding["average_price"]) == Decimal("50")
    assert Decimal(holding["last_price"]) == Decimal("55")
    assert Decimal(holding["current_value"]) == Decimal("5500")
    assert Decimal(holding["unrealized_pnl"]) == Decimal("500")
    assert holding["origin_note"] == "SIP Auto-execution"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_ready_reports_db_connection(client):
    resp = await client.get("/ready")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ready", "db_connected": True}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_sip_rounds_amount_to_paise(client):
    resp = await _create_sip(client, amount="5000.555")

    assert resp.status_code == 201
    assert Decimal(resp.json()["amount"]) == Decimal("5000.56")

    listed = await client.get("/api/v1/sip", params={"user_id": "user-1"})
    assert Decimal(listed.json()[0]["amount"]) == Decimal("5000.56")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_sip_rejects_amount_that_rounds_to_zero(client):
    resp = await _create_sip(client, amount="0.004")
    assert resp.status_code == 422
