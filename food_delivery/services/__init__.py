"""
                        Services Module

External collaborators behind small interfaces. Each service has an
in-memory (development) and a Redis-backed (staging/production)
implementation, selected by ENV_MODE.

Services:
    - events: order:new / order:update broadcast
    - otp: one-time code issue and verification
"""

from food_delivery.services.events import get_event_sink
from food_delivery.services.otp import get_otp_service

__all__ = ["get_event_sink", "get_otp_service"]
