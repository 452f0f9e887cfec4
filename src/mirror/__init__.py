"""Artifact and metadata mirroring.

This package holds the parallel artifact mirror engine, metadata mirroring,
log sinks, and the application that orchestrates a complete mirror run.
"""
