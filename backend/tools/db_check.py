import json
import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"
BATCH = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Export Log (latest 20) ===")
cur.execute(
    "SELECT id, export_date, status, order_count, order_file, packing_file, message, meta "
    "FROM export_log ORDER BY id DESC LIMIT 20"
)
for r in cur.fetchall():
    meta = r[7] or "NULL"
    try:
        meta = json.loads(meta) if isinstance(meta, str) else meta
    except ValueError:
        pass
    print(
        {
            "id": r[0],
            "export_date": r[1],
            "status": r[2],
            "order_count": r[3],
            "order_file": r[4],
            "packing_file": r[5],
            "message": r[6],
            "meta": meta,
        }
    )

print("\n=== Orders by export status ===")
cur.execute("SELECT status, export_status, COUNT(*) FROM orders GROUP BY status, export_status")
for r in cur.fetchall():
    print(r)

if BATCH:
    print(f"\n=== Orders in batch {BATCH} ===")
    cur.execute(
        "SELECT id, status, export_status, export_timestamp FROM orders WHERE export_batch=? ORDER BY id",
        (BATCH,),
    )
    for r in cur.fetchall():
        print(r)

conn.close()
