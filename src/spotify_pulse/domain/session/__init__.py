"""Session domain - the engine the presentation layer subscribes to.

This domain handles:
- Login, refresh-token resume and logout
- One-shot refresh-and-retry for authenticated calls
- Poll, tick and feature threads coordinated through a single event queue
"""

from .events import FeaturesFetched, PollCompleted, Tick
from .facade import SessionFacade, Subscriber

__all__ = [
    "FeaturesFetched",
    "PollCompleted",
    "Tick",
    "SessionFacade",
    "Subscriber",
]
