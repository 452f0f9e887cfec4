"""Artifact content comparison.

This package holds the comparator registry and the helpers that compare
artifacts stored in two repositories.
"""
