#!/usr/bin/env python3
"""
Sign a Stripe event body and optionally post it to a running gateway.

Useful for replaying captured events against a local server:

    scripts/sign_webhook.py event.json --secret whsec_... --url http://localhost:3000/webhook
"""

import argparse
import json
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import requests  # noqa: E402

from payments.webhooks import SIGNATURE_HEADER, sign_payload  # noqa: E402


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("body", help="path to a JSON event body, or - for stdin")
    parser.add_argument(
        "--secret",
        default=os.getenv("STRIPE_WEBHOOK_SECRET"),
        help="signing secret (defaults to STRIPE_WEBHOOK_SECRET)",
    )
    parser.add_argument("--timestamp", type=int, help="override the signed timestamp")
    parser.add_argument("--url", help="post the signed body to this webhook URL")
    return parser.parse_args(argv)


def read_body(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        return f.read()


def main(argv=None) -> int:
    args = parse_args(argv)
    if not args.secret:
        print("Error: no signing secret given", file=sys.stderr)
        return 1

    body = read_body(args.body)
    try:
        json.loads(body)
    except ValueError:
        print("Error: body must be valid JSON", file=sys.stderr)
        return 1

    header = sign_payload(body, args.secret, args.timestamp)
    if not args.url:
        print(header)
        return 0

    response = requests.post(
        args.url,
        data=body,
        headers={SIGNATURE_HEADER: header, "Content-Type": "application/json"},
        timeout=10,
    )
    print(f"{response.status_code} {response.text}")
    return 0 if response.ok else 1


if __name__ == "__main__":
    sys.exit(main())
