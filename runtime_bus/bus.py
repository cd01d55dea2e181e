from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional

from .messages import MessageEnvelope

logger = logging.getLogger(__name__)

Handler = Callable[[MessageEnvelope], None]


def _iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class RuntimeBus:
    """In-process pub/sub bus with last-value replay for sticky topics."""

    def __init__(self, sticky_topics: Iterable[str] = ()):
        self._lock = threading.RLock()
        self._subscribers: Dict[str, tuple[str, Handler]] = {}
        self._topic_index: Dict[str, set[str]] = {}
        self._sticky_topics = set(sticky_topics)
        self._last_sticky: Dict[str, MessageEnvelope] = {}

    def subscribe(self, topic: str, handler: Handler, *, replay: bool = True) -> str:
        sub_id = str(uuid.uuid4())
        with self._lock:
            self._subscribers[sub_id] = (topic, handler)
            self._topic_index.setdefault(topic, set()).add(sub_id)
            last = self._last_sticky.get(topic) if replay else None
        if last is not None:
            self._dispatch(handler, last)
        return sub_id

    def unsubscribe(self, sub_id: str) -> None:
        with self._lock:
            topic, _ = self._subscribers.pop(sub_id, (None, None))
            if topic and topic in self._topic_index:
                self._topic_index[topic].discard(sub_id)
                if not self._topic_index[topic]:
                    self._topic_index.pop(topic, None)

    def publish(
        self,
        topic: str,
        payload: Optional[Dict[str, object]],
        source: str,
        trace_id: Optional[str] = None,
        *,
        sticky: bool = False,
    ) -> MessageEnvelope:
        sticky = sticky or topic in self._sticky_topics
        envelope = self._build_envelope(topic, payload, source, trace_id, sticky)
        with self._lock:
            if sticky:
                self._last_sticky[topic] = envelope
            handlers = self._copy_handlers(topic)
        for handler in handlers:
            self._dispatch(handler, envelope)
        return envelope

    def last_sticky(self, topic: str) -> Optional[MessageEnvelope]:
        with self._lock:
            return self._last_sticky.get(topic)

    def clear_sticky(self, topic: str) -> None:
        with self._lock:
            self._last_sticky.pop(topic, None)

    def _dispatch(self, handler: Handler, envelope: MessageEnvelope) -> None:
        try:
            handler(envelope)
        except Exception as exc:  # pragma: no cover - defensive
            logger.error("runtime_bus publish handler error on %s: %s", envelope.type, exc)

    def _build_envelope(
        self,
        topic: str,
        payload: Optional[Dict[str, object]],
        source: str,
        trace_id: Optional[str],
        sticky: bool,
    ) -> MessageEnvelope:
        body = payload if isinstance(payload, dict) else {}
        return MessageEnvelope(
            msg_id=str(uuid.uuid4()),
            type=topic,
            timestamp=_iso_timestamp(),
            source=source,
            payload=dict(body),
            trace_id=trace_id or str(uuid.uuid4()),
            sticky=sticky,
        )

    def _copy_handlers(self, topic: str) -> list[Handler]:
        sub_ids = list(self._topic_index.get(topic, ()))
        return [self._subscribers[sid][1] for sid in sub_ids if sid in self._subscribers]


_GLOBAL_BUS: Optional[RuntimeBus] = None
_GLOBAL_LOCK = threading.Lock()


def get_global_bus() -> RuntimeBus:
    global _GLOBAL_BUS
    with _GLOBAL_LOCK:
        if _GLOBAL_BUS is None:
            from .topics import STICKY_TOPICS

            _GLOBAL_BUS = RuntimeBus(sticky_topics=STICKY_TOPICS)
    return _GLOBAL_BUS
