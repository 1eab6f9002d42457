"""
Tests package - unit tests and system tests of the Artemis Cloud suite.

Contains:
- unit/: Unit tests of the suite's own components (no cluster needed)
- integration/: System tests against a live cluster running the operator
"""
