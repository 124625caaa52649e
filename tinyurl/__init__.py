"""Constrained URL shortener service."""
