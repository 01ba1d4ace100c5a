"""Durable write queue.

Public Interface:
    - WriteQueue: enqueue / dequeue_succeeded / list_pending / record_attempt / cancel
"""

from .manager import WriteQueue

__all__ = ["WriteQueue"]
