"""Core constants used across mirror modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

UNIT_NAMESPACE = "unit"
CONTENT_FILE_NAME = "content.json"
ARTIFACTS_INDEX_FILE_NAME = "artifacts.json"
ARTIFACTS_DIR_NAME = "artifacts"
REPOSITORY_FORMAT_VERSION = 1
MEMORY_LOCATION_PREFIX = "mem:"
FILE_URI_PREFIX = "file://"
DEFAULT_COMPARATOR_ID = "checksum.sha-256"
DEFAULT_CHECKSUM_ALGORITHM = "sha-256"
CHECKSUM_PROPERTY_PREFIX = "checksum."
SIZE_PROPERTY = "download.size"
DEFAULT_MAX_WORKERS = 4
DEFAULT_CHUNK_SIZE = 64 * 1024
ARTIFACT_MIRROR_LOG_ROOT = "unitmirror.artifact.mirror"
JSON_LOG_SUFFIXES = (".jsonl", ".json")
PLANNER_PROFILE_PREFIX = "mirror-"
