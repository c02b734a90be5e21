"""
Realtime broadcasts to household members.

Each household has its own channel, ``household:<id>``. Events:

- expense:created / expense:updated / expense:deleted
- budget:updated (payload carries the action: created, updated or deleted)

Broadcasts happen after the write has been committed. A failed broadcast is
logged and reported as False; it never raises and is never retried.
"""
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import requests
from fastapi.encoders import jsonable_encoder

from homebudget.app.config import get_settings

logger = logging.getLogger(__name__)

EXPENSE_CREATED = "expense:created"
EXPENSE_UPDATED = "expense:updated"
EXPENSE_DELETED = "expense:deleted"
BUDGET_UPDATED = "budget:updated"


class RealtimeBroadcaster:
    def __init__(self, base_url: Optional[str], api_key: Optional[str], timeout: float = 2.0):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.base_url and self.api_key)

    def broadcast(self, household_id: str, event: str, payload: Dict[str, Any]) -> bool:
        """Send one event to the household channel; returns whether it was delivered"""
        if not self.enabled:
            logger.warning("Realtime not configured. Skipping broadcast for %s", event)
            return False

        message = {
            "topic": f"household:{household_id}",
            "event": event,
            "payload": jsonable_encoder({
                "household_id": household_id,
                **payload,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }),
            "private": False,
        }

        try:
            response = requests.post(
                f"{self.base_url}/realtime/v1/api/broadcast",
                json={"messages": [message]},
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Failed to broadcast %s to household:%s: %s", event, household_id, e)
            return False

        logger.info("Broadcasted %s to household:%s", event, household_id)
        return True


@lru_cache()
def get_broadcaster() -> RealtimeBroadcaster:
    settings = get_settings()
    return RealtimeBroadcaster(
        settings.supabase_url,
        settings.supabase_service_key,
        timeout=settings.realtime_timeout_seconds,
    )


def broadcast_expense_created(household_id: str, expense: Dict[str, Any]) -> bool:
    return get_broadcaster().broadcast(household_id, EXPENSE_CREATED, {"expense": expense})


def broadcast_expense_updated(household_id: str, expense: Dict[str, Any]) -> bool:
    return get_broadcaster().broadcast(household_id, EXPENSE_UPDATED, {"expense": expense})


def broadcast_expense_deleted(household_id: str, expense_id: str) -> bool:
    return get_broadcaster().broadcast(household_id, EXPENSE_DELETED, {"expense_id": expense_id})


def broadcast_budget_updated(household_id: str, budget: Dict[str, Any], action: str = "updated") -> bool:
    return get_broadcaster().broadcast(household_id, BUDGET_UPDATED, {"budget": budget, "action": action})
