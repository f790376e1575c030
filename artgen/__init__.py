"""Rarity-weighted generative artwork engine."""
