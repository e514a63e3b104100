# scripts/check_order_status.py
#
#   python scripts/check_order_status.py 112697
#   python scripts/check_order_status.py 112697 --item 2 --url http://fsm-tracking:3000

import os, sys
import argparse
import json

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

import requests

from config import API_BASE_URL, SESSION
from logger import get_logger

log = get_logger("check_order_status")


def post_order_status(order_number: str, item_number=None, base_url: str = API_BASE_URL) -> list:
    body = {"orderNumber": order_number, "itemNumber": item_number}
    url = f"{base_url.rstrip('/')}/order-status"
    log.debug(f"POST {url} {body}")

    resp = SESSION.post(url, json=body, headers={"Accept": "application/json"}, timeout=60)
    resp.raise_for_status()
    return resp.json()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Ask the order status API about one order.")
    parser.add_argument("order")
    parser.add_argument("--item", default=None)
    parser.add_argument("--url", default=API_BASE_URL)
    args = parser.parse_args(argv)

    try:
        rows = post_order_status(args.order, args.item, args.url)
    except requests.RequestException as e:
        print(f"❌ Request failed: {e}")
        return 1

    for r in rows:
        print(
            f"Order {r.get('orderNumber')} item {r.get('itemNumber') or '-'}: "
            f"{r.get('customerStatus')} (raw {r.get('rawStatus')}, "
            f"ETA {r.get('estimatedDeliveryDate') or '-'})"
        )
    print(json.dumps(rows, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
