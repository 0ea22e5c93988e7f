from medcore.notifications.bus import Notification, NotificationBus, Severity

__all__ = ["Notification", "NotificationBus", "Severity"]
