#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json

import requests


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the reference order store with the demo menu")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--price-includes-tax", action="store_true")
    args = parser.parse_args()

    resp = requests.post(
        f"{args.base_url}/demo/seed",
        params={"price_includes_tax": str(args.price_includes_tax).lower()},
        timeout=60,
    )
    resp.raise_for_status()
    data = resp.json()
    print(json.dumps(data, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
