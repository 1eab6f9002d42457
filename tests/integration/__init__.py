"""System tests that run against a live Kubernetes cluster."""
