"""DNS-based discovery adapters."""
