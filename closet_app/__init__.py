"""Closet backend application package."""
