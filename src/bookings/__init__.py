"""Reservation availability and lifecycle engine for rental listings."""

__version__ = "0.1.0"
