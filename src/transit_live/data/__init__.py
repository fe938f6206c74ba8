"""Configuration, request cache and transit data service clients."""
