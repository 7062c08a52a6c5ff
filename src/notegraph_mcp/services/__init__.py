"""Derivation and orchestration services."""
