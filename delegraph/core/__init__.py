"""Projection core: the pure applier, the guarded store, derived views."""
