import pytest

import avlindex.app as app_module
from avlindex.storage import IndexStore


@pytest.fixture
def client(monkeypatch):
    store = IndexStore()
    for k in (5, 3, 8, 1, 4):
        store.insert_record(k, f"v{k}")
    monkeypatch.setattr(app_module, "store", store)
    monkeypatch.setitem(app_module.STATE, "db_loaded", True)
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


def test_status(client):
    body = client.get("/api/status").get_json()
    assert body["ok"] is True
    assert body["data"]["index"]["size"] == 5


def test_search(client):
    r = client.get("/api/index/4")
    assert r.status_code == 200
    assert r.get_json()["data"] == {"key": 4, "value": "v4"}

    r = client.get("/api/index/6")
    assert r.status_code == 404
    assert r.get_json()["ok"] is False

    assert client.get("/api/index/abc").status_code == 400
    assert client.get("/api/index/99999999999").status_code == 400


def test_insert_and_duplicate(client):
    r = client.post("/api/index/insert", json={"key": -2, "value": "minus two"})
    assert r.status_code == 200
    assert r.get_json()["data"]["size"] == 6

    r = client.post("/api/index/insert", json={"key": -2, "value": "again"})
    assert r.status_code == 409

    r = client.post("/api/index/insert", json={"key": 10})
    assert r.status_code == 400
    r = client.post("/api/index/insert", json={"key": 11, "value": 3})
    assert r.status_code == 400


def test_delete(client):
    r = client.post("/api/index/delete/5")
    assert r.status_code == 200
    assert r.get_json()["data"]["deleted"] is True
    assert client.post("/api/index/delete/5").status_code == 404
    assert client.get("/api/index/keys").get_json()["data"]["keys"] == [1, 3, 4, 8]


def test_min_max(client):
    assert client.get("/api/index/min").get_json()["data"] == {"key": 1, "value": "v1"}
    assert client.get("/api/index/max").get_json()["data"] == {"key": 8, "value": "v8"}


def test_min_on_empty_index(monkeypatch, client):
    monkeypatch.setattr(app_module, "store", IndexStore())
    assert client.get("/api/index/min").status_code == 404


def test_keys_limit_and_range(client):
    body = client.get("/api/index/keys?limit=2").get_json()["data"]
    assert body["keys"] == [1, 3]
    assert body["size"] == 5

    r = client.get("/api/index/range?start=3&end=6")
    assert [row["key"] for row in r.get_json()["data"]["rows"]] == [3, 4, 5]
    assert client.get("/api/index/range?start=3").status_code == 400


def test_rank_select(client):
    assert client.get("/api/index/rank/5").get_json()["data"]["rank"] == 3
    assert client.get("/api/index/select/0").get_json()["data"]["key"] == 1
    assert client.get("/api/index/select/5").status_code == 404


def test_partition(client):
    r = client.post("/api/index/partition/4")
    data = r.get_json()["data"]
    assert data["left_keys"] == [1, 3]
    assert data["right_keys"] == [5, 8]
    assert client.get("/api/index/keys").get_json()["data"]["keys"] == [1, 3, 4, 5, 8]
    assert client.post("/api/index/partition/7").status_code == 404


def test_internal_type_error_is_not_reported_as_bad_request(client, monkeypatch):
    def broken(key):
        raise TypeError("internal failure")

    monkeypatch.setattr(app_module.store, "get_record", broken)
    with pytest.raises(TypeError):
        client.get("/api/index/4")


def test_warm_start_loads_csv(tmp_path, monkeypatch):
    csv_path = tmp_path / "seed.csv"
    csv_path.write_text("key,value\n2,two\n1,one\n", encoding="utf-8")
    monkeypatch.setattr(app_module, "store", IndexStore())
    monkeypatch.setitem(app_module.STATE, "db_loaded", False)
    app_module.warm_start(str(csv_path))
    assert app_module.STATE["db_loaded"] is True
    assert app_module.store.keys() == [1, 2]


def test_warm_start_missing_csv(tmp_path, monkeypatch):
    monkeypatch.setitem(app_module.STATE, "db_loaded", False)
    app_module.warm_start(str(tmp_path / "missing.csv"))
    assert app_module.STATE["db_loaded"] is False
