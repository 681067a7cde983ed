"""Kinship graph engine: labels, ancestry checks and family tree layout."""
