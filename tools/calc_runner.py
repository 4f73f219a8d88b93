"""
Post a sizing scenario to a running calculator service and print the response.

Usage:
    python tools/calc_runner.py --entry 100 --stop 90 --funds 1000 --risk-pct 2
    python tools/calc_runner.py --side short --entry 50 --stop 55 --funds 500 --risk-amount 25
    python tools/calc_runner.py --validate-only --entry 100 --stop 110 --funds 1000 --risk-pct 2

Notes:
    - The base URL defaults to http://APP_HOST:APP_PORT from the environment / .env.
    - Passing --risk-amount switches the request to fixed risk mode.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

import requests

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.append(str(repo_root))

from leverage_calc.core.config import get_settings


def build_payload(args: argparse.Namespace) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "positionType": args.side,
        "entryPrice": args.entry,
        "stopLoss": args.stop,
        "initialFunds": args.funds,
    }
    if args.risk_amount is not None:
        payload["riskMode"] = "fixed"
        payload["riskAmount"] = args.risk_amount
    else:
        payload["riskMode"] = "percentage"
        payload["riskTolerance"] = args.risk_pct
    return payload


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run a position sizing request against the calculator API.")
    parser.add_argument("--base-url", default=f"http://{settings.app_host}:{settings.app_port}")
    parser.add_argument("--side", choices=["long", "short"], default="long")
    parser.add_argument("--entry", required=True)
    parser.add_argument("--stop", required=True)
    parser.add_argument("--funds", required=True)
    parser.add_argument("--risk-pct", default="")
    parser.add_argument("--risk-amount", default=None)
    parser.add_argument("--validate-only", action="store_true")
    parser.add_argument("--timeout", type=float, default=10.0)
    args = parser.parse_args()

    endpoint = "validate" if args.validate_only else "calculate"
    url = f"{args.base_url.rstrip('/')}/api/calculator/{endpoint}"
    try:
        resp = requests.post(url, json=build_payload(args), timeout=args.timeout)
    except requests.RequestException as exc:
        print(f"Request failed: {exc}", file=sys.stderr)
        return 2

    print(f"HTTP {resp.status_code}")
    try:
        print(json.dumps(resp.json(), indent=2))
    except ValueError:
        print(resp.text)
    return 0 if resp.ok else 1


if __name__ == "__main__":
    sys.exit(main())
