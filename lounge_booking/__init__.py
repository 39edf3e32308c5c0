"""Lounge booking service: Cal.com availability and booking proxy plus the booking wizard."""

__version__ = "1.0.0"
