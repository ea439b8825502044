import csv
import io
from datetime import timedelta

from database import TRANSACTIONS, utcnow
from tests.conftest import iso_days_ago, make_tx


def test_transactions_require_auth(client):
    assert client.get("/api/transactions").status_code == 401


def test_list_paginates_newest_first(client, auth_headers, seed):
    seed(*[make_tx(10 + i, days_ago=i) for i in range(12)])

    first = client.get("/api/transactions", headers=auth_headers, params={"page": 1, "limit": 5}).json()
    last = client.get("/api/transactions", headers=auth_headers, params={"page": 3, "limit": 5}).json()

    assert first["pagination"] == {"page": 1, "limit": 5, "total": 12, "pages": 3}
    assert [tx["amount"] for tx in first["data"]] == [10, 11, 12, 13, 14]
    assert len(last["data"]) == 2


def test_list_response_shape(client, auth_headers, seed):
    seed(make_tx(100, category="Revenue", user_id="u9", user_name="Zed"))

    tx = client.get("/api/transactions", headers=auth_headers).json()["data"][0]

    assert tx["name"] == "Zed"
    assert tx["email"] == "u9@example.com"
    assert tx["userId"] == "u9"
    assert tx["type"] == "Income"
    assert tx["status"] == "Completed"
    assert tx["description"] == "Revenue transaction"
    assert tx["avatar"].startswith("https://")


def test_date_range_seven_days(client, auth_headers, seed):
    seed(make_tx(1, days_ago=1), make_tx(2, days_ago=6), make_tx(3, days_ago=8), make_tx(4, days_ago=40))
    cutoff = utcnow() - timedelta(days=7)

    resp = client.get("/api/transactions", headers=auth_headers, params={"dateRange": "7days"}).json()

    assert sorted(tx["amount"] for tx in resp["data"]) == [1, 2]
    assert resp["pagination"]["total"] == 2
    for tx in resp["data"]:
        assert tx["date"] >= cutoff.isoformat()


def test_sort_amount_ascending(client, auth_headers, seed):
    seed(make_tx(300), make_tx(5), make_tx(42.5), make_tx(1000), make_tx(42.5))

    resp = client.get("/api/transactions", headers=auth_headers,
                      params={"sortField": "amount", "sortDirection": "asc"}).json()
    amounts = [tx["amount"] for tx in resp["data"]]

    assert amounts == sorted(amounts)
    assert amounts[0] == 5


def test_sort_by_name(client, auth_headers, seed):
    seed(make_tx(1, user_name="Carol"), make_tx(2, user_name="alice"), make_tx(3, user_name="Bob"))

    resp = client.get("/api/transactions", headers=auth_headers,
                      params={"sortField": "name", "sortDirection": "desc"}).json()

    names = [tx["name"] for tx in resp["data"]]
    assert names == sorted(names, reverse=True)


def test_invalid_sort_field_is_400(client, auth_headers):
    resp = client.get("/api/transactions", headers=auth_headers, params={"sortField": "password"})

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_filters_status_category_type_and_search(client, auth_headers, seed):
    seed(
        make_tx(100, category="Revenue", status="Completed", user_name="Alice"),
        make_tx(20, category="Food", status="Pending", user_name="Bob"),
        make_tx(30, category="Food", status="Completed", user_name="Carol"),
        make_tx(40, category="Salary", direction="Income", user_name="Dan"),
    )

    def amounts(**params):
        data = client.get("/api/transactions", headers=auth_headers, params=params).json()["data"]
        return sorted(tx["amount"] for tx in data)

    assert amounts(status="pending") == [20]
    assert amounts(category="food") == [20, 30]
    assert amounts(category="Fo") == []
    assert amounts(type="Income") == [40, 100]
    assert amounts(type="Expense") == [20, 30]
    assert amounts(search="car") == [30]
    assert amounts(search="all", status="all") == [20, 30, 40, 100]


def test_search_is_literal_text(client, auth_headers, seed):
    seed(make_tx(1, user_name="A.B"), make_tx(2, user_name="AxB"))

    data = client.get("/api/transactions", headers=auth_headers, params={"search": "a.b"}).json()["data"]

    assert [tx["amount"] for tx in data] == [1]


def test_create_get_delete(client, auth_headers, db):
    created = client.post("/api/transactions", headers=auth_headers, json={
        "user_id": "u7", "user_name": "Grace", "amount": 250.5, "category": "Revenue",
        "date": "2025-01-15T10:00:00Z",
    })
    assert created.status_code == 201
    tx_id = created.json()["data"]["id"]
    assert created.json()["data"]["date"] == "2025-01-15T10:00:00"

    fetched = client.get(f"/api/transactions/{tx_id}", headers=auth_headers)
    assert fetched.json()["data"]["amount"] == 250.5
    assert "direction" not in db[TRANSACTIONS].find_one({})

    assert client.delete(f"/api/transactions/{tx_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/transactions/{tx_id}", headers=auth_headers).status_code == 404
    assert client.delete(f"/api/transactions/{tx_id}", headers=auth_headers).status_code == 404


def test_create_rejects_negative_amount(client, auth_headers):
    resp = client.post("/api/transactions", headers=auth_headers,
                       json={"user_id": "u1", "amount": -5, "category": "Food"})

    assert resp.status_code == 400


def test_get_with_malformed_id_is_404(client, auth_headers):
    assert client.get("/api/transactions/not-an-id", headers=auth_headers).status_code == 404


def _export(client, headers, **body):
    payload = {"columns": ["name", "amount", "category", "type"]}
    payload.update(body)
    return client.post("/api/transactions/export", headers=headers, json=payload)


def test_export_row_count_matches_query(client, auth_headers, seed, db):
    seed(
        make_tx(10, category="Food"),
        make_tx(20, category="Food", status="Pending"),
        make_tx(30, category="Revenue"),
        make_tx(40, category="Travel", days_ago=100),
    )

    resp = _export(client, auth_headers, filters={"category": "Food"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "attachment" in resp.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == ["name", "amount", "category", "type"]
    assert len(rows) - 1 == db[TRANSACTIONS].count_documents({"category": "Food"})


def test_export_date_bounds_include_end_day(client, auth_headers, seed):
    today = utcnow()
    seed(make_tx(1, days_ago=0), make_tx(2, days_ago=3), make_tx(3, days_ago=30))
    start = (today - timedelta(days=5)).date().isoformat()
    end = today.date().isoformat()

    resp = _export(client, auth_headers, dateRange={"start": start, "end": end})

    rows = list(csv.DictReader(io.StringIO(resp.text)))
    assert sorted(float(r["amount"]) for r in rows) == [1, 2]


def test_export_rejects_bad_input(client, auth_headers):
    assert _export(client, auth_headers, columns=[]).status_code == 400
    assert _export(client, auth_headers, columns=["password"]).status_code == 400
    assert _export(client, auth_headers, format="xlsx").status_code == 400
    assert _export(client, auth_headers, dateRange={"start": "yesterday"}).status_code == 400


def test_demo_seed(client, auth_headers, db):
    resp = client.post("/api/demo", headers=auth_headers, json={"count": 25})

    assert resp.status_code == 201
    assert resp.json()["data"]["inserted"] == 25
    assert db[TRANSACTIONS].count_documents({}) == 25


def test_date_range_includes_string_dated_documents(client, auth_headers, seed):
    seed(make_tx(1, date=iso_days_ago(2)), make_tx(2, date=iso_days_ago(20)), make_tx(3, days_ago=1))

    resp = client.get("/api/transactions", headers=auth_headers, params={"dateRange": "7days"}).json()

    assert sorted(tx["amount"] for tx in resp["data"]) == [1, 3]
    assert resp["pagination"]["total"] == 2


def test_export_bounds_include_string_dated_documents(client, auth_headers, seed):
    today = utcnow()
    seed(make_tx(1, date=iso_days_ago(0)), make_tx(2, date=iso_days_ago(3)), make_tx(3, date=iso_days_ago(30)))
    start = (today - timedelta(days=5)).date().isoformat()

    resp = _export(client, auth_headers, dateRange={"start": start, "end": today.date().isoformat()})

    rows = list(csv.DictReader(io.StringIO(resp.text)))
    assert sorted(float(r["amount"]) for r in rows) == [1, 2]
