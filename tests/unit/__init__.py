"""Unit tests - no cluster required."""
