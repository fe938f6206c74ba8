"""Fencing, fan-out/join and geometry primitives."""
