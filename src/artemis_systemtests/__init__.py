"""
Artemis Cloud System Tests - integration test suite for the ActiveMQ Artemis
Cloud operator.

This package drives a live Kubernetes cluster to verify the operator:
- Broker, address and security custom resource lifecycle
- File-based and OLM-based operator installation
- Message delivery through bundled and containerised messaging clients
- Teardown bookkeeping so test runs do not leak cluster state
"""

__version__ = "0.1.0"
