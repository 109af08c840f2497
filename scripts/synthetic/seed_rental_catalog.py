#!/usr/bin/env python3
"""Seed a glass rental service with a catalog, customers and orders over HTTP."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import random
import time
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Mapping, MutableMapping, Sequence

import httpx

DEFAULT_GLASS_TYPES = ["Wine Glass", "Champagne Flute", "Beer Glass", "Tumbler", "Cocktail Glass"]
DEFAULT_EVENT_TYPES = ["Wedding", "Birthday", "Corporate", "Graduation", "Anniversary"]
DEFAULT_LOCATIONS = ["Kigali Convention Centre", "Lake Kivu Serena", "Nyarutarama", "Kimihurura Garden"]
DEFAULT_FIRST_NAMES = ["Alice", "Eric", "Grace", "Jean", "Aline", "Patrick", "Diane", "Olivier"]
DEFAULT_LAST_NAMES = ["Uwase", "Mugisha", "Ingabire", "Habimana", "Niyonzima", "Mukamana"]

# Unit groupings created for every glass type: (unit type, units in stock, price per unit).
CATALOG_LAYOUT = [
    ("individual", 240, 500),
    ("small_box", 20, 2700),
    ("large_box", 4, 20000),
]


def _env_default(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


def _split_env(name: str, fallback: Sequence[str]) -> list[str]:
    value = os.getenv(name)
    if not value:
        return list(fallback)
    return [token.strip() for token in value.split(",") if token.strip()]


@dataclass(slots=True)
class SeedStep:
    kind: str
    entity_id: str | None
    status_code: int | None
    error: str | None


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the glass rental service with synthetic data")
    parser.add_argument(
        "--base-url",
        default=_env_default("RENTAL_SERVICE_BASE_URL", "http://127.0.0.1:8000"),
        help="Rental service base URL (default: %(default)s or RENTAL_SERVICE_BASE_URL)",
    )
    parser.add_argument(
        "--customers",
        type=int,
        default=int(_env_default("RENTAL_SEED_CUSTOMERS", "10")),
        help="Number of customers to create (default: %(default)s or RENTAL_SEED_CUSTOMERS)",
    )
    parser.add_argument(
        "--orders-per-customer",
        type=int,
        default=int(_env_default("RENTAL_SEED_ORDERS", "2")),
        help="Orders placed per customer (default: %(default)s or RENTAL_SEED_ORDERS)",
    )
    parser.add_argument(
        "--glass-types",
        nargs="*",
        default=_split_env("RENTAL_SEED_GLASS_TYPES", DEFAULT_GLASS_TYPES),
        help="Glass types added to the catalog (default: %(default)s)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(_env_default("RENTAL_SEED_TIMEOUT", "5")),
        help="HTTP timeout in seconds (default: %(default)s or RENTAL_SEED_TIMEOUT)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    parser.add_argument("--dry-run", action="store_true", help="Print generated payloads without calling the API")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print the final JSON result")

    args = parser.parse_args()
    if args.customers <= 0:
        parser.error("--customers must be positive")
    if args.orders_per_customer < 0:
        parser.error("--orders-per-customer must not be negative")
    if not args.glass_types:
        parser.error("--glass-types must provide at least one option")
    return args


def _glassware_payloads(glass_types: Sequence[str]) -> list[dict[str, Any]]:
    return [
        {
            "type": glass_type,
            "unitType": unit_type,
            "description": f"{glass_type} ({unit_type.replace('_', ' ')})",
            "quantityAvailable": quantity,
            "pricePerUnit": price,
        }
        for glass_type in glass_types
        for unit_type, quantity, price in CATALOG_LAYOUT
    ]


def _customer_payload(idx: int) -> dict[str, Any]:
    first = random.choice(DEFAULT_FIRST_NAMES)
    last = random.choice(DEFAULT_LAST_NAMES)
    event_date = date.today() + timedelta(days=random.randint(7, 120))
    return {
        "name": f"{first} {last}",
        "email": f"{first}.{last}.{idx}@example.com".lower(),
        "phone": f"+25078{random.randint(1_000_000, 9_999_999)}",
        "eventDate": event_date.isoformat(),
        "eventLocation": random.choice(DEFAULT_LOCATIONS),
        "eventType": random.choice(DEFAULT_EVENT_TYPES),
    }


def _order_payload(customer: Mapping[str, Any], glassware: Mapping[str, Any]) -> dict[str, Any]:
    event_date = date.fromisoformat(customer["eventDate"])
    return {
        "customerId": customer["id"],
        "glasswareId": glassware["id"],
        "quantity": random.randint(1, 5) if glassware["unitType"] != "individual" else random.randint(10, 60),
        "orderDate": date.today().isoformat(),
        "deliveryDate": (event_date - timedelta(days=1)).isoformat(),
        "status": random.choice(["pending", "pending", "confirmed"]),
    }


async def _post_json(
    client: httpx.AsyncClient,
    url: str,
    payload: Mapping[str, Any],
) -> tuple[int, MutableMapping[str, Any]]:
    response = await client.post(url, json=payload)
    response.raise_for_status()
    body = response.json()
    if not isinstance(body, MutableMapping):
        raise ValueError("Unexpected JSON response structure")
    return response.status_code, body


async def _create(
    client: httpx.AsyncClient,
    url: str,
    kind: str,
    payload: Mapping[str, Any],
) -> tuple[SeedStep, MutableMapping[str, Any] | None]:
    try:
        status, body = await _post_json(client, url, payload)
    except (httpx.HTTPError, ValueError) as exc:
        response = getattr(exc, "response", None)
        status_code = response.status_code if response is not None else None
        return SeedStep(kind=kind, entity_id=None, status_code=status_code, error=str(exc)), None
    return SeedStep(kind=kind, entity_id=str(body.get("id")), status_code=status, error=None), body


async def seed(args: argparse.Namespace) -> Mapping[str, Any]:
    if args.seed is not None:
        random.seed(args.seed)
    base_url = args.base_url.rstrip("/")
    glassware_payloads = _glassware_payloads(args.glass_types)
    customer_payloads = [_customer_payload(idx) for idx in range(args.customers)]

    if args.dry_run:
        return {
            "status": "dry-run",
            "glassware": glassware_payloads,
            "customersSample": customer_payloads[: min(3, len(customer_payloads))],
        }

    start = time.perf_counter()
    steps: list[SeedStep] = []
    async with httpx.AsyncClient(timeout=args.timeout) as client:
        catalog: list[MutableMapping[str, Any]] = []
        for payload in glassware_payloads:
            step, body = await _create(client, f"{base_url}/glassware", "glassware", payload)
            steps.append(step)
            if body is not None:
                catalog.append(body)

        customers: list[MutableMapping[str, Any]] = []
        for payload in customer_payloads:
            step, body = await _create(client, f"{base_url}/customers", "customer", payload)
            steps.append(step)
            if body is not None:
                customers.append(body)

        if catalog:
            for customer in customers:
                for _ in range(args.orders_per_customer):
                    payload = _order_payload(customer, random.choice(catalog))
                    step, _ = await _create(client, f"{base_url}/orders", "order", payload)
                    steps.append(step)

        dashboard = (await client.get(f"{base_url}/reports/dashboard")).json()

    failures = [step for step in steps if step.error]
    return {
        "status": "ok" if not failures else "partial",
        "durationSeconds": round(time.perf_counter() - start, 3),
        "created": {
            kind: sum(1 for step in steps if step.kind == kind and not step.error)
            for kind in ("glassware", "customer", "order")
        },
        "failures": [
            {"kind": step.kind, "statusCode": step.status_code, "error": step.error} for step in failures
        ],
        "dashboard": dashboard,
    }


async def main_async() -> int:
    args = parse_args()
    report = await seed(args)
    print(json.dumps(report, indent=2 if args.pretty else None))
    return 0 if report.get("status") in {"ok", "dry-run"} else 2


def main() -> None:
    try:
        exit_code = asyncio.run(main_async())
    except KeyboardInterrupt:
        exit_code = 130
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
