import json
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from itertools import count
from urllib import request
from urllib.error import HTTPError


BASE_URL = os.getenv("LEDGER_URL", "http://127.0.0.1:5477/api/v1")

_ids = count(1)


def _send(method: str, path: str, payload: dict | None = None, session_id: str | None = None):
    data = json.dumps(payload).encode("utf-8") if payload is not None else None
    headers = {"Content-Type": "application/json"}
    if session_id:
        headers["X-session-ID"] = session_id
    req = request.Request(f"{BASE_URL}{path}", data=data, method=method, headers=headers)
    with request.urlopen(req, timeout=10) as response:
        body = response.read()
        return response.status, json.loads(body) if body else None


def create_session() -> str:
    _, body = _send("POST", "/sessions")
    return str(body["session_id"])


def call_once(session_id: str) -> int:
    transaction_id = next(_ids)
    payload = {
        "id": transaction_id,
        "date": "2023-10-12T20:15:00.000Z",
        "amount": 250,
        "external-iban": "NL91ABNA0417164300",
        "type": "withdrawal",
        "category": {"id": 1, "name": "groceries"},
    }
    try:
        status, _ = _send("POST", "/transactions", payload, session_id)
        if status != 201:
            return status
        status, _ = _send("GET", f"/transactions/{transaction_id}", session_id=session_id)
        return status
    except HTTPError as exc:
        return exc.code


def main(total_requests: int = 200, workers: int = 20) -> None:
    session_id = create_session()
    started = time.perf_counter()
    statuses = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(call_once, session_id) for _ in range(total_requests)]
        for future in as_completed(futures):
            statuses.append(future.result())

    elapsed = time.perf_counter() - started
    ok = sum(1 for status in statuses if status == 200)
    throttled = sum(1 for status in statuses if status == 429)
    errors = len(statuses) - ok - throttled
    print(f"total_requests={total_requests}")
    print(f"workers={workers}")
    print(f"ok={ok}")
    print(f"throttled={throttled}")
    print(f"errors={errors}")
    print(f"elapsed_sec={elapsed:.3f}")
    print(f"throughput_rps={total_requests / elapsed:.2f}")


if __name__ == "__main__":
    main()
