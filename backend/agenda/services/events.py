"""
backend/agenda/services/events.py

Event emitter: pushes scheduling events to Redis for the chat agent and
dashboard notifiers.

Queue:
- events:p2p: instant delivery (appointment changes, cycle resets)

Emission is fire-and-forget: a Redis outage is logged and never fails
the booking that triggered it.
"""

import json
import time
import logging

from redis.exceptions import RedisError

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a p2p event.

    Pushed to Redis list `events:p2p` for the consumer loop.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(P2P_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
    except RedisError as e:
        logger.error(f"Failed to emit event {event_type}: {e}")


def appointment_payload(appointment) -> dict:
    return {
        "appointment_id": appointment.id,
        "organization_id": appointment.organization_id,
        "salesperson_id": appointment.salesperson_id,
        "lead_id": appointment.lead_id,
        "scheduled_at": appointment.scheduled_at.isoformat() + "Z",
        "status": appointment.status,
    }
