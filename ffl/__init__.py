"""Pair league backend: season scheduling, weekly points by place, standings."""
