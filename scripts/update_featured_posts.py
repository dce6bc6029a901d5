#!/usr/bin/env python3
"""
Featured Posts Rotation

Clears every featured flag and features the current top published posts.
Meant to be run from cron when the HTTP refresh endpoint is not reachable.

Reads the database URL the same way the service does (DATABASE_URL or
POSTGRES_* env vars).

Usage:
  python scripts/update_featured_posts.py [--json]
"""
from __future__ import annotations
import json
import logging
import sys

from dotenv import load_dotenv


def main() -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    # Import after load_dotenv so the engine sees .env settings
    from byteinit.db.database import SessionLocal
    from byteinit.services.featured_posts import update_featured_posts

    db = SessionLocal()
    try:
        featured = update_featured_posts(db)
    finally:
        db.close()

    ids = [str(blog_id) for blog_id in featured]
    if '--json' in sys.argv:
        print(json.dumps({'featured': ids}, indent=2))
    else:
        print(f"featured {len(ids)} post(s)")
        for blog_id in ids:
            print(f"  {blog_id}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
