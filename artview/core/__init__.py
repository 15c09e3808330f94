"""Core services, configuration and infrastructure."""
