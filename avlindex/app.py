import os
import time
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from avlindex.errors import DuplicateKeyError, KeyNotFoundError
from avlindex.storage import IndexStore

app = Flask(__name__)

store = IndexStore()

STATE: Dict[str, Any] = {"csv_path": None, "db_loaded": False}

DEFAULT_CSV_PATH = os.environ.get(
    "AVLINDEX_CSV_PATH", os.path.join(os.path.dirname(__file__), "..", "data", "sample.csv"))
HOST = os.environ.get("AVLINDEX_HOST", "127.0.0.1")
PORT = int(os.environ.get("AVLINDEX_PORT", "5000"))
MAX_LIMIT = 1000


def ok(data=None, **extra):
    payload = {"ok": True}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload)

def err(message: str, status: int = 400, **extra):
    payload = {"ok": False, "error": message}
    payload.update(extra)
    return jsonify(payload), status

def warm_start(csv_path: Optional[str] = None):
    """Ingest the CSV into the index at startup."""
    csv_path = (csv_path or DEFAULT_CSV_PATH or "").strip()
    STATE["csv_path"] = csv_path

    if not csv_path:
        print("[warm_start] No CSV path provided.")
        return
    if not os.path.exists(csv_path):
        print(f"[warm_start] CSV not found: {csv_path}")
        return

    t0 = time.time()
    store.ingest_data(csv_path)
    t1 = time.time()
    STATE["db_loaded"] = True
    print(f"[warm_start] Index loaded: {len(store):,} records in {t1 - t0:.2f}s")

def parse_key(raw: Any) -> Optional[int]:
    """
    Accepts an int or a decimal integer string (optionally signed).
    Returns the int or None if invalid.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    s = str(raw or "").strip()
    if not s:
        return None
    try:
        return int(s)
    except ValueError:
        return None

def parse_limit(default: int = 50) -> int:
    limit = request.args.get("limit", str(default))
    try:
        return max(1, min(MAX_LIMIT, int(limit)))
    except ValueError:
        return default


@app.errorhandler(ValueError)
def handle_bad_key(e):
    return err(str(e), 400)


@app.get("/api/status")
def api_status():
    return ok({
        "csv_path": STATE["csv_path"],
        "db_loaded": STATE["db_loaded"],
        "index": store.stats(),
    })


@app.get("/api/index/min")
def api_index_min():
    if len(store) == 0:
        return err("index is empty", 404)
    key = store.key_index.min_key()
    return ok({"key": key, "value": store.key_index.min()})

@app.get("/api/index/max")
def api_index_max():
    if len(store) == 0:
        return err("index is empty", 404)
    key = store.key_index.max_key()
    return ok({"key": key, "value": store.key_index.max()})

@app.get("/api/index/keys")
def api_index_keys():
    limit = parse_limit()
    keys = store.keys(limit)
    return ok({"count_returned": len(keys), "size": len(store), "keys": keys})

@app.get("/api/index/range")
def api_index_range():
    start = request.args.get("start")
    end = request.args.get("end")
    if start is None or end is None:
        return err("start and end are required: /api/index/range?start=...&end=...")

    start_key = parse_key(start)
    end_key = parse_key(end)
    if start_key is None or end_key is None:
        return err("start/end must be integers")

    limit = parse_limit()
    rows = []
    for key, value in store.range_query(start_key, end_key):
        rows.append({"key": key, "value": value})
        if len(rows) >= limit:
            break
    return ok({"count_returned": len(rows), "rows": rows})

@app.get("/api/index/rank/<key>")
def api_index_rank(key: str):
    key_int = parse_key(key)
    if key_int is None:
        return err("key must be an integer")
    return ok({"key": key_int, "rank": store.rank(key_int)})

@app.get("/api/index/select/<index>")
def api_index_select(index: str):
    i = parse_key(index)
    if i is None:
        return err("index must be an integer")
    try:
        key, value = store.select(i)
    except IndexError as e:
        return err(str(e), 404)
    return ok({"index": i, "key": key, "value": value})

@app.get("/api/index/<key>")
def api_index_search(key: str):
    key_int = parse_key(key)
    if key_int is None:
        return err("key must be an integer")

    value = store.get_record(key_int)
    if value is None:
        return err("record not found", 404)
    return ok({"key": key_int, "value": value})


@app.post("/api/index/insert")
def api_index_insert():
    data = request.get_json(silent=True) or {}
    missing = [k for k in ("key", "value") if k not in data]
    if missing:
        return err(f"missing fields: {missing}")

    key_int = parse_key(data["key"])
    if key_int is None:
        return err("key must be an integer")
    if not isinstance(data["value"], str):
        return err("value must be a string")

    try:
        steps = store.insert_record(key_int, data["value"])
    except DuplicateKeyError as e:
        return err(str(e), 409)
    return ok({"key": key_int, "rebalance_steps": steps, "size": len(store)})

@app.post("/api/index/delete/<key>")
def api_index_delete(key: str):
    key_int = parse_key(key)
    if key_int is None:
        return err("key must be an integer")

    try:
        steps = store.delete_record(key_int)
    except KeyNotFoundError as e:
        return err(str(e), 404)
    return ok({"deleted": True, "key": key_int, "rebalance_steps": steps, "size": len(store)})

@app.post("/api/index/partition/<key>")
def api_index_partition(key: str):
    key_int = parse_key(key)
    if key_int is None:
        return err("key must be an integer")

    try:
        result = store.partition(key_int)
    except KeyNotFoundError as e:
        return err(str(e), 404)
    return ok(result)


if __name__ == "__main__":
    warm_start()
    app.run(host=HOST, port=PORT, debug=True, use_reloader=False, threaded=False)
