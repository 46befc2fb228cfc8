"""Background services built on the resource clients."""

from .status_poller import AdaptivePoller, PollState, Transition

__all__ = ["AdaptivePoller", "PollState", "Transition"]
