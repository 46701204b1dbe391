"""Thermal printer command synthesis and Bluetooth serial transport."""

__version__ = "1.0.0"
