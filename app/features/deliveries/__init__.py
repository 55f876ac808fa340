"""Daily milk delivery records."""

from app.features.deliveries.models import DeliveryRecord, DeliveryStatus, PaymentStatus

__all__ = ["DeliveryRecord", "DeliveryStatus", "PaymentStatus"]
