"""
Catalog events.
"""

from cybertrain.kernel.events.emitter import EventEmitter
from cybertrain.kernel.events.event_types import BaseEvent, CatalogEventType

__all__ = ["EventEmitter", "BaseEvent", "CatalogEventType"]
