"""Orchestrators that turn map actions into fetches and displayable state."""
