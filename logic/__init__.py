"""Persistence-layer logic for outfits and wishlist items."""
