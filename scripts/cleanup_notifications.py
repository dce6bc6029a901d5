#!/usr/bin/env python3
"""
Expired Notification Cleanup

Deletes notifications whose expires_at has passed and prints the count.

Usage:
  python scripts/cleanup_notifications.py
"""
from __future__ import annotations
import logging
import sys

from dotenv import load_dotenv


def main() -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    from byteinit.db.database import SessionLocal
    from byteinit.services.notification_service import NotificationService

    db = SessionLocal()
    try:
        deleted = NotificationService(db).cleanup_expired_notifications()
    finally:
        db.close()
    print(f"deleted {deleted} expired notification(s)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
