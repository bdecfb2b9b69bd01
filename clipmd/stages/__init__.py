"""Conversion stages: content detection, normalization, tables, rendering, cleanup."""
