"""Tests for the HTTP endpoints."""
from pathlib import Path

import pytest

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

NEW_SALE = {
    "transaction_id": 100,
    "customer_id": 1,
    "product_id": 1,
    "sale_date": "2024-07-02",
    "amount": "15000.00",
    "quantity": 1,
}


@pytest.mark.asyncio
class TestAdminEndpoints:
    """Health, cache and dataset endpoints."""

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_load_dataset(self, client):
        response = await client.post("/dataset/load", json={"directory": str(DATA_DIR)})
        assert response.status_code == 201
        body = response.json()
        assert (body["customers"], body["products"], body["transactions"]) == (8, 5, 21)

    async def test_load_missing_dataset(self, client, tmp_path):
        response = await client.post("/dataset/load", json={"directory": str(tmp_path)})
        assert response.status_code == 404

    async def test_cache_stats_and_clear(self, client, sample_dataset):
        await client.get("/analytics/running-totals")
        stats = (await client.get("/cache/stats")).json()
        assert stats["entries"] == 1

        cleared = (await client.post("/cache/clear")).json()
        assert cleared["cleared"] == 1


@pytest.mark.asyncio
class TestRecordEndpoints:
    """Create and read endpoints for reference data and facts."""

    async def test_list_customers_by_region(self, client, sample_dataset):
        response = await client.get("/customers", params={"region": "Huye"})
        body = response.json()
        assert body["total"] == 2
        assert [c["customer_id"] for c in body["items"]] == [2, 6]

    async def test_get_product(self, client, sample_dataset):
        response = await client.get("/products/2")
        assert response.status_code == 200
        assert response.json()["name"] == "Office Chair"

    async def test_unknown_customer_404(self, client, sample_dataset):
        response = await client.get("/customers/999")
        assert response.status_code == 404

    async def test_create_transaction(self, client, sample_dataset):
        response = await client.post("/transactions", json=NEW_SALE)
        assert response.status_code == 201
        assert response.json()["transaction_id"] == 100

        fetched = await client.get("/transactions/100")
        assert fetched.json()["quantity"] == 1

    async def test_transaction_with_unknown_customer(self, client, sample_dataset):
        response = await client.post("/transactions", json={**NEW_SALE, "customer_id": 999})
        assert response.status_code == 400
        assert "unknown customer" in response.json()["detail"]

    async def test_non_positive_amount_rejected(self, client, sample_dataset):
        response = await client.post("/transactions", json={**NEW_SALE, "amount": "-1.00"})
        assert response.status_code == 422

    async def test_duplicate_transaction(self, client, sample_dataset):
        response = await client.post("/transactions", json={**NEW_SALE, "transaction_id": 1})
        assert response.status_code == 409

    async def test_no_delete_route(self, client, sample_dataset):
        response = await client.delete("/transactions/1")
        assert response.status_code == 405

    async def test_list_transactions_by_date(self, client, sample_dataset):
        response = await client.get(
            "/transactions", params={"start_date": "2024-01-01", "end_date": "2024-01-31"}
        )
        body = response.json()
        assert body["total"] == 4
        assert sum(float(t["amount"]) for t in body["items"]) == 138000.0


@pytest.mark.asyncio
class TestAnalyticsEndpoints:
    """The five analyses, insights and report over HTTP."""

    async def test_running_totals(self, client, sample_dataset):
        body = (await client.get("/analytics/running-totals")).json()
        assert body["items"][0] == {
            "month": "2024-01",
            "monthly_total": 138000.0,
            "running_total": 138000.0,
        }

    async def test_growth(self, client, sample_dataset):
        body = (await client.get("/analytics/growth")).json()
        assert body["items"][1]["growth_pct"] == -13.04

    async def test_moving_averages(self, client, sample_dataset):
        body = (await client.get("/analytics/moving-averages", params={"window": 3})).json()
        assert body["items"][2]["moving_average"] == 131333.33

    async def test_top_products(self, client, sample_dataset):
        body = (await client.get("/analytics/top-products", params={"top_n": 1, "region": "Rubavu"})).json()
        assert [(i["quarter"], i["product_name"]) for i in body["items"]] == [
            (1, "Desk Lamp"),
            (2, "USB-C Hub"),
        ]

    async def test_spending_quartiles(self, client, sample_dataset):
        body = (await client.get("/analytics/spending-quartiles")).json()
        assert body["total"] == 8
        assert body["summary"][0]["total_spent"] == 269000.0

    async def test_unknown_region(self, client, sample_dataset):
        response = await client.get("/analytics/growth", params={"region": "Atlantis"})
        assert response.status_code == 400

    async def test_invalid_top_n(self, client):
        response = await client.get("/analytics/top-products", params={"top_n": 0})
        assert response.status_code == 422

    async def test_invalid_bucket_count(self, client):
        response = await client.get("/analytics/spending-quartiles", params={"buckets": 0})
        assert response.status_code == 422

    async def test_new_sale_invalidates_cache(self, client, sample_dataset):
        before = (await client.get("/analytics/running-totals")).json()
        await client.post("/transactions", json=NEW_SALE)
        after = (await client.get("/analytics/running-totals")).json()

        assert before["total"] == 6
        assert after["total"] == 7
        assert after["items"][-1]["running_total"] == 761000.0

    async def test_insights(self, client, sample_dataset):
        body = (await client.get("/analytics/insights")).json()
        assert len(body["insights"]) == 5
        assert body["growth"]["items"][1]["growth_pct"] == -13.04

    async def test_markdown_report(self, client, sample_dataset):
        response = await client.get("/analytics/report")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/markdown")
        assert "| 2024-01 | 138,000.00 | 138,000.00 |" in response.text
