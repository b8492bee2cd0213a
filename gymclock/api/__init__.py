"""
GymClock API - Remote Data Gateway
"""

from .gateway import (
    RemoteDataGateway,
    Reservation,
    GatewayError,
    GatewayConnectionError,
    GatewayTimeoutError,
    GatewayAuthError,
    GatewayResponseError,
)

__all__ = [
    'RemoteDataGateway',
    'Reservation',
    'GatewayError',
    'GatewayConnectionError',
    'GatewayTimeoutError',
    'GatewayAuthError',
    'GatewayResponseError',
]
