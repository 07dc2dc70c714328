#!/usr/bin/env python3
"""Generate VAPID keys for push notifications.

Usage:
  python scripts/generate_vapid.py                     # print .env lines
  python scripts/generate_vapid.py --pem backend/vapid_private.pem
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "backend"))

from push.vapid import export_private_key, export_public_key, generate_vapid_identity


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--contact", default="mailto:admin@localhost")
    p.add_argument("--pem", help="write the private key as PKCS8 PEM to this path")
    args = p.parse_args()

    identity = generate_vapid_identity(args.contact)

    print("# Paste these into your .env file:")
    print(f"VAPID_PUBLIC_KEY={export_public_key(identity)}")
    if args.pem:
        with open(args.pem, "w") as f:
            f.write(export_private_key(identity, fmt="pem"))
        os.chmod(args.pem, 0o600)
        print(f"VAPID_PRIVATE_KEY_PATH={args.pem}")
    else:
        print(f"VAPID_PRIVATE_KEY={export_private_key(identity)}")
    print(f"VAPID_SUB_EMAIL={identity.contact}")


if __name__ == "__main__":
    main()
