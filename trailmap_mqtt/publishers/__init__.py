"""
MQTT Publishers
===============

Bounded Context: Message Production

Design:
- BasePublisher: Abstract base with connection management
- DiscoveryPublisher: Publishes discovery messages per owner

Public API
----------
    BasePublisher: Abstract publisher (for custom publishers)
    DiscoveryPublisher: Discovery message publisher
"""

from .base import BasePublisher
from .discovery import DiscoveryPublisher

__all__ = [
    'BasePublisher',
    'DiscoveryPublisher',
]
