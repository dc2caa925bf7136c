"""Configuration for proxydeploy."""
