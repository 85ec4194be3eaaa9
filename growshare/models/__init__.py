"""Database models."""

from growshare.models.booking import Booking
from growshare.models.dispute import Dispute, DisputeMessage
from growshare.models.notification import Notification
from growshare.models.plot import Plot
from growshare.models.user import User, UserActivity

__all__ = [
    # User
    "User",
    "UserActivity",
    # Plot
    "Plot",
    # Booking
    "Booking",
    # Dispute
    "Dispute",
    "DisputeMessage",
    # Notification
    "Notification",
]
