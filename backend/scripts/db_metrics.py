"""Print a one-off JSON snapshot of pool state and milestone status counts."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import func, select

from phazur.db.models import UserMilestoneModel
from phazur.db.monitoring import get_pool_snapshot
from phazur.db.session import get_engine, session_scope

LOGGER = logging.getLogger("phazur.db_metrics")


def collect() -> Dict[str, Any]:
    engine = get_engine()
    with session_scope(commit=False) as session:
        rows = session.execute(
            select(UserMilestoneModel.status, func.count()).group_by(UserMilestoneModel.status)
        ).all()
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "pool": get_pool_snapshot(engine),
        "milestones_by_status": {status: count for status, count in rows},
    }


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    try:
        print(json.dumps(collect()))
        return 0
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Failed to collect database metrics: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
