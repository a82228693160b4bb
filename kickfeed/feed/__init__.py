"""Feed - session state and the controller that drives it."""

from kickfeed.feed.controller import FeedController
from kickfeed.feed.state import FeedState, FeedStatus

__all__ = ["FeedController", "FeedState", "FeedStatus"]
