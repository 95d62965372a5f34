"""Watch loop relaying mentions, replies, reactions and channel messages to a webhook.

See Also:
    [Watcher][nostaro.services.watch.service.Watcher]: The service class.
    [WatchConfig][nostaro.services.watch.configs.WatchConfig]: Service configuration.
"""

from .configs import WatchConfig
from .service import Watcher, WatchStats
from .utils import Notification, NotificationLabel, Outcome, ProfileDisplay
from .webhook import post_webhook


__all__ = [
    "Notification",
    "NotificationLabel",
    "Outcome",
    "ProfileDisplay",
    "WatchConfig",
    "WatchStats",
    "Watcher",
    "post_webhook",
]
