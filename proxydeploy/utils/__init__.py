"""Shared utilities for proxydeploy."""
