# Change propagation package
from jotter.events.live import LiveQuery
from jotter.events.notifier import ChangeNotifier

__all__ = [
    "ChangeNotifier",
    "LiveQuery",
]
