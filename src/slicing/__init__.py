"""Dependency closure computation.

This package walks requirement edges from a root set of units and returns
the deduplicated closure, or delegates resolution to an external planner.
"""
