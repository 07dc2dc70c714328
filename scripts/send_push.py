#!/usr/bin/env python3
"""
Send one push notification to a stored subscription using the .env VAPID key.

Usage:
  python scripts/send_push.py --subscription sub.json --title "Hello" --body "It works"

sub.json is the browser's PushSubscription JSON:
  {"endpoint": "...", "keys": {"p256dh": "...", "auth": "..."}}
"""

import argparse
import json
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "backend"))

from pywebpush import WebPushException

from notifications.utils import init_vapid_identity, send_to_subscription
from push import PushError


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--subscription", required=True)
    p.add_argument("--title", default="Manual Push Test")
    p.add_argument("--body", default="If you see this, the VAPID key worked!")
    p.add_argument("--url", default="/")
    p.add_argument("--ttl", type=int, default=None)
    args = p.parse_args()

    logging.basicConfig(level=logging.INFO)

    with open(args.subscription, "r", encoding="utf-8") as f:
        sub_info = json.load(f)

    identity = init_vapid_identity()
    if identity is None:
        print("VAPID_PRIVATE_KEY not configured")
        return 1

    payload = {"title": args.title, "body": args.body, "data": {"url": args.url}}

    try:
        print(f"Sending push to {sub_info.get('endpoint', '')[:50]}...")
        response = send_to_subscription(payload, sub_info, identity, ttl=args.ttl)
        print(f"Push sent (HTTP {response.status_code})")
    except PushError as e:
        print(f"Invalid input: {e}")
        return 1
    except WebPushException as ex:
        print(f"Failed: {ex}")
        if ex.response is not None:
            print(f"Response: {ex.response.text}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
