"""Utility helpers shared by the system test services."""
