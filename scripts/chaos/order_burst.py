#!/usr/bin/env python3
"""Chaos scenario: fire concurrent orders at one glassware row and check for oversell.

The script creates (or reuses) a catalog row and a customer, submits a burst of
orders in parallel, then compares the row's final stock against the orders that
were accepted. Any mismatch or negative stock is reported as ``inconsistent``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import time
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Mapping

import httpx


def _env_default(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


@dataclass(slots=True)
class OrderAttempt:
    status_code: int | None
    quantity: int
    detail: str | None
    duration: float


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Submit concurrent orders and verify stock accounting")
    parser.add_argument(
        "--base-url",
        default=_env_default("RENTAL_SERVICE_BASE_URL", "http://127.0.0.1:8000"),
        help="Rental service base URL (default: %(default)s or RENTAL_SERVICE_BASE_URL)",
    )
    parser.add_argument(
        "--glassware-id",
        default=os.getenv("ORDER_BURST_GLASSWARE_ID"),
        help="Existing glassware row to order from; a fresh row is created when omitted",
    )
    parser.add_argument(
        "--initial-stock",
        type=int,
        default=int(_env_default("ORDER_BURST_INITIAL_STOCK", "100")),
        help="Stock for the freshly created row (default: %(default)s or ORDER_BURST_INITIAL_STOCK)",
    )
    parser.add_argument(
        "--orders",
        type=int,
        default=int(_env_default("ORDER_BURST_ORDERS", "40")),
        help="Number of orders to submit (default: %(default)s or ORDER_BURST_ORDERS)",
    )
    parser.add_argument(
        "--quantity",
        type=int,
        default=int(_env_default("ORDER_BURST_QUANTITY", "5")),
        help="Quantity per order (default: %(default)s or ORDER_BURST_QUANTITY)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=int(_env_default("ORDER_BURST_CONCURRENCY", "8")),
        help="Maximum in-flight orders (default: %(default)s or ORDER_BURST_CONCURRENCY)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(_env_default("ORDER_BURST_TIMEOUT", "10")),
        help="HTTP timeout in seconds (default: %(default)s or ORDER_BURST_TIMEOUT)",
    )
    parser.add_argument("--pretty", action="store_true", help="Pretty-print the final JSON result")

    args = parser.parse_args()
    if args.orders <= 0:
        parser.error("--orders must be positive")
    if args.quantity <= 0:
        parser.error("--quantity must be positive")
    if args.concurrency <= 0:
        parser.error("--concurrency must be positive")
    if args.initial_stock < 0:
        parser.error("--initial-stock must not be negative")
    return args


async def _prepare(client: httpx.AsyncClient, base_url: str, args: argparse.Namespace) -> tuple[str, str]:
    token = uuid.uuid4().hex[:8]
    if args.glassware_id:
        glassware_id = args.glassware_id
    else:
        response = await client.post(
            f"{base_url}/glassware",
            json={
                "type": f"Burst Glass {token}",
                "description": "order burst scenario",
                "quantityAvailable": args.initial_stock,
                "pricePerUnit": 100,
            },
        )
        response.raise_for_status()
        glassware_id = response.json()["id"]

    response = await client.post(
        f"{base_url}/customers",
        json={
            "name": "Order Burst",
            "email": f"burst-{token}@example.com",
            "phone": "+250780000000",
            "eventDate": (date.today() + timedelta(days=30)).isoformat(),
            "eventLocation": "Chaos Lab",
            "eventType": "Load Test",
        },
    )
    response.raise_for_status()
    return glassware_id, response.json()["id"]


async def _current_stock(client: httpx.AsyncClient, base_url: str, glassware_id: str) -> int:
    response = await client.get(f"{base_url}/glassware/{glassware_id}")
    response.raise_for_status()
    return int(response.json()["quantityAvailable"])


async def _submit(
    client: httpx.AsyncClient,
    url: str,
    payload: Mapping[str, Any],
    semaphore: asyncio.Semaphore,
) -> OrderAttempt:
    async with semaphore:
        start = time.perf_counter()
        try:
            response = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            return OrderAttempt(None, payload["quantity"], str(exc), time.perf_counter() - start)
        detail = None if response.status_code == 201 else response.json().get("detail")
        return OrderAttempt(response.status_code, payload["quantity"], detail, time.perf_counter() - start)


async def run_burst(args: argparse.Namespace) -> Mapping[str, Any]:
    base_url = args.base_url.rstrip("/")
    async with httpx.AsyncClient(timeout=args.timeout) as client:
        glassware_id, customer_id = await _prepare(client, base_url, args)
        before = await _current_stock(client, base_url, glassware_id)

        payload = {
            "customerId": customer_id,
            "glasswareId": glassware_id,
            "quantity": args.quantity,
            "orderDate": date.today().isoformat(),
            "deliveryDate": (date.today() + timedelta(days=29)).isoformat(),
        }
        semaphore = asyncio.Semaphore(args.concurrency)
        attempts = await asyncio.gather(
            *(_submit(client, f"{base_url}/orders", payload, semaphore) for _ in range(args.orders))
        )
        after = await _current_stock(client, base_url, glassware_id)

    accepted = [attempt for attempt in attempts if attempt.status_code == 201]
    conflicts = [attempt for attempt in attempts if attempt.status_code == 409]
    errors = [attempt for attempt in attempts if attempt.status_code not in (201, 409)]
    expected = before - sum(attempt.quantity for attempt in accepted)
    consistent = after == expected and after >= 0

    return {
        "status": "consistent" if consistent else "inconsistent",
        "glasswareId": glassware_id,
        "stockBefore": before,
        "stockAfter": after,
        "expectedStockAfter": expected,
        "accepted": len(accepted),
        "rejected": len(conflicts),
        "concurrentRetries": sum(1 for attempt in conflicts if "concurrently" in (attempt.detail or "")),
        "errors": [{"statusCode": attempt.status_code, "detail": attempt.detail} for attempt in errors],
        "averageDurationSeconds": round(sum(a.duration for a in attempts) / len(attempts), 3),
    }


async def main_async() -> int:
    args = parse_args()
    report = await run_burst(args)
    print(json.dumps(report, indent=2 if args.pretty else None))
    return 0 if report["status"] == "consistent" else 2


def main() -> None:
    try:
        exit_code = asyncio.run(main_async())
    except KeyboardInterrupt:
        exit_code = 130
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
