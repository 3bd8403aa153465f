"""Application services: endpoint discovery and Core API calls."""
