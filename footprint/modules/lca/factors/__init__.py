"""Packaged methodology factor tables."""
