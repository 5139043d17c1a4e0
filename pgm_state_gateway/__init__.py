"""Bending machine program state publisher for the OPC-UA REST gateway."""

__version__ = "1.0.0"
