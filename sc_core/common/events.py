# sc_core/common/events.py
from __future__ import annotations

import logging
from collections import defaultdict
from functools import partial
from typing import Any, Callable, Dict, List

from django.db import transaction

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], None]

_registry: Dict[str, List[Handler]] = defaultdict(list)


def subscribe(event_name: str):
    """
    Decorator to register an event handler.
    Usage:
        @subscribe("deletion.initiated")
        def handler(payload): ...
    """
    def _decorator(fn: Handler) -> Handler:
        _registry[event_name].append(fn)
        return fn
    return _decorator


def publish(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Deliver an event to in-process subscribers.

    Handlers are sinks (notifications, mail): a failing handler is logged and the
    remaining handlers still run. Nothing propagates back to the publisher.
    """
    for handler in _registry.get(event_name, []):
        try:
            handler(payload)
        except Exception:
            logger.exception("Event handler %s failed for %s", getattr(handler, "__name__", handler), event_name)


def publish_on_commit(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Publish once the surrounding transaction commits.
    A rolled-back transition never notifies; a committed one never waits on a sink.
    """
    transaction.on_commit(partial(publish, event_name, dict(payload)))
