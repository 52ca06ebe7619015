"""Notification kinds and delivery channels."""

from enum import Enum


class NotificationType(Enum):
    ORDER_CONFIRMATION = "OrderConfirmation"
    ORDER_STATUS_UPDATE = "OrderStatusUpdate"


class NotificationChannel(Enum):
    EMAIL = "Email"
