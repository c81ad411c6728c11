"""Adapter package.

Architectural role:
- Defines the external interaction boundary for CLI and HTTP interfaces.
- Performs transport-level input collection and response shaping.
- Delegates job handling to `sd_client.image.service.JobSession`.
"""
