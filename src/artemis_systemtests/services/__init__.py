"""
Services package - cluster access and resource lifecycle for the tests.

Contains:
- KubeClient: façade over the Kubernetes APIs
- ResourceManager: creation, readiness and teardown of Artemis resources
- Cluster operator installers (deploy files or OLM)
"""
