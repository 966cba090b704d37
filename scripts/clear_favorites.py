#!/usr/bin/env python3
"""
Show and optionally delete the favorites/ratings keys kept in Redis.

Usage:
  # dry-run (default) - print stored values only
  REDIS_HOST=localhost REDIS_PORT=6379 python3 scripts/clear_favorites.py

  # actually delete them (careful)
  REDIS_HOST=localhost REDIS_PORT=6379 python3 scripts/clear_favorites.py --delete

If REDIS_PASSWORD is set, it will be used.
"""

import os
import argparse
import redis

from voltsage.services.favorites_service import FAVORITES_KEY, RATINGS_KEY


def parse_args():
    p = argparse.ArgumentParser(description="Inspect or delete stored favorites and ratings")
    p.add_argument("--delete", action="store_true", help="Delete the keys (use with caution)")
    return p.parse_args()


def main():
    args = parse_args()

    host = os.environ.get("REDIS_HOST", "localhost")
    port = int(os.environ.get("REDIS_PORT", 6379))
    password = os.environ.get("REDIS_PASSWORD") or None

    print(f"Connecting to Redis {host}:{port} (password set: {'yes' if password else 'no'})")
    try:
        r = redis.Redis(host=host, port=port, password=password, decode_responses=True)
        r.ping()
    except Exception as e:
        print(f"ERROR: cannot connect to Redis: {e}")
        return 2

    for key in (FAVORITES_KEY, RATINGS_KEY):
        print(f"{key}: {r.get(key) or '(empty)'}")

    if not args.delete:
        print("Dry-run mode: no keys deleted. Rerun with --delete to remove them.")
        return 0

    deleted = r.delete(FAVORITES_KEY, RATINGS_KEY)
    print(f"Deleted {deleted} key(s).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
