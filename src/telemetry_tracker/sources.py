"""Event source registration.

UI toolkits, HTTP client hooks and connectivity monitors live outside this
package. They implement ``EventSource`` and are registered with a tracker,
which calls ``attach`` once it has started and ``detach`` on shutdown. A
source reports raw signals through the tracker's public ``report_*`` and
``track_*`` methods and never touches the queue directly.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from telemetry_tracker.tracker import Tracker


class EventSource(ABC):
    """Something that feeds raw signals into a tracker."""

    @abstractmethod
    def attach(self, tracker: "Tracker") -> None:
        """Begin reporting to ``tracker``."""
        pass

    @abstractmethod
    def detach(self) -> None:
        """Stop reporting and release any hooks."""
        pass


class CallbackSource(EventSource):
    """Minimal source that just holds the tracker for host code to call.

    Useful when the host wires its own callbacks and only needs a handle that
    is valid between start and shutdown.
    """

    def __init__(self) -> None:
        self.tracker: Optional["Tracker"] = None

    def attach(self, tracker: "Tracker") -> None:
        self.tracker = tracker

    def detach(self) -> None:
        self.tracker = None

    @property
    def attached(self) -> bool:
        return self.tracker is not None
