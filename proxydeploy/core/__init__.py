"""Deployment stages and orchestration."""
