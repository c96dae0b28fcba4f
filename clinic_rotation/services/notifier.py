from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterator, Optional
import json
import logging

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

QUEUE_CHANGED = "queue_changed"

class QueueAction(str, Enum):
    INITIALIZED = "initialized"
    ADVANCED = "advanced"
    RESET = "reset"

@dataclass(frozen=True)
class QueueChangeEvent:
    """Something changed for the given day. Carries no state; re-fetch on receipt."""
    date: date
    action: QueueAction
    
    def to_json(self) -> str:
        return json.dumps({
            "event": QUEUE_CHANGED,
            "date": self.date.isoformat(),
            "action": self.action.value,
        })
    
    @classmethod
    def from_json(cls, raw: str) -> Optional["QueueChangeEvent"]:
        try:
            payload = json.loads(raw)
            if payload.get("event") != QUEUE_CHANGED:
                return None
            return cls(
                date=date.fromisoformat(payload["date"]),
                action=QueueAction(payload["action"]),
            )
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.warning(f"Ignoring malformed queue notification: {raw!r}")
            return None

class ChangeNotifier:
    """Fans queue mutations out to every open client over Redis pub/sub."""
    
    def __init__(self, redis_client, channel: str):
        self.redis = redis_client
        self.channel = channel
    
    def publish(self, queue_date: date, action: QueueAction) -> bool:
        """Announce a mutation. Best effort: the write it reports is already durable."""
        event = QueueChangeEvent(date=queue_date, action=action)
        try:
            self.redis.publish(self.channel, event.to_json())
            return True
        except RedisError as e:
            logger.warning(
                f"Could not publish {action.value} for {queue_date} on {self.channel}: {str(e)}"
            )
            return False
    
    def listen(self, timeout: float = 1.0) -> Iterator[Optional[QueueChangeEvent]]:
        """Yield change events as they arrive.
        
        Yields None on every idle ``timeout`` so streaming consumers can check
        for disconnects. Closing the generator drops the subscription.
        """
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(self.channel)
        try:
            while True:
                message = pubsub.get_message(timeout=timeout)
                if message is None or message.get("type") != "message":
                    yield None
                    continue
                
                event = QueueChangeEvent.from_json(message["data"])
                if event is not None:
                    yield event
        finally:
            pubsub.close()
