import os
import time
from avlindex.storage import IndexStore

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
CSV_FILE_PATH = os.environ.get("AVLINDEX_CSV_PATH", os.path.join(BASE_DIR, 'data', 'sample.csv'))

def run_ingest_and_smoke_test():
    print("--- avlindex ingest + smoke test ---")
    store = IndexStore()

    start_time = time.time()
    store.ingest_data(CSV_FILE_PATH)
    end_time = time.time()

    print(f"Ingested {len(store)} records in {end_time - start_time:.2f}s")

    keys = store.keys()
    if not keys:
        print("No records loaded.")
        return

    mid_key = keys[len(keys) // 2]
    print(f"Sample GET at {mid_key}: value={store.get_record(mid_key)!r} rank={store.rank(mid_key)}")

    range_start = keys[0]
    range_end = range_start + 30
    rows = list(store.range_query(range_start, range_end))
    print(f"Range [{range_start}, {range_end}) -> {len(rows)} records")
    for key, value in rows[:3]:
        print(f"  - {key}: {value}")
    if len(rows) > 3:
        print("  ...")

    result = store.partition(mid_key)
    print(f"Split at {mid_key}: {len(result['left_keys'])} left / {len(result['right_keys'])} right, "
          f"join cost {result['join_cost']}")
    print(f"Index stats: {store.stats()}")


if __name__ == "__main__":
    run_ingest_and_smoke_test()
