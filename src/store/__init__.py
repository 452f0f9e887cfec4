"""Repository storage layer.

This module holds the in-memory and filesystem repositories, composite
source views, and the provider that opens repositories by location.
"""
