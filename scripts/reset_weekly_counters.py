"""Reset weekly substitution counters for the current ISO week.

Meant for a Monday-morning cron job; requests already reset lazily, so
running it late or twice is harmless.

Run:
  PYTHONPATH=backend python scripts/reset_weekly_counters.py
"""

from __future__ import annotations

import logging

from app.db.session import SessionLocal
from app.services.quota import current_iso_week, reset_weekly_counters


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    week = current_iso_week()
    with SessionLocal() as db:
        reset_count = reset_weekly_counters(db, week=week)
        db.commit()
    print(f"Reset {reset_count} counter(s) for {week}")


if __name__ == "__main__":
    main()
