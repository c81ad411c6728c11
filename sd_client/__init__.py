"""Stable Diffusion job client.

Submits image-generation jobs to a RunPod serverless endpoint, polls them to
completion and returns the generated image references.
"""
