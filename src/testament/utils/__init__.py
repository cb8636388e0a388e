"""Utility modules for testament."""
