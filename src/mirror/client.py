"""Python SDK for slicing and mirroring.

This module exposes high-level APIs for closure computation, mirror runs and
declarative mirror-spec execution backed by a repository provider.
"""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import replace
from typing import Any, Sequence

from core.cancellation import CancellationToken
from core.config import MirrorConfig
from core.mirror_spec_execution import execute_mirror_spec_file
from core.types import SlicingPolicy
from mirror.application import MirrorApplication, MirrorRequest, MirrorRunResult
from mirror.mirror_types import ArtifactMirrorOptions
from slicing.planner import ExternalPlanner
from slicing.roots import select_roots
from slicing.slicer import SliceResult, Slicer
from store.composite import CompositeMetadataRepository
from store.provider import LocalRepositoryProvider, RepositoryProvider
from store.repository import MetadataRepository


class MirrorClient:
    """Primary SDK entry point for mirror workflows."""

    def __init__(
        self,
        config: MirrorConfig | None = None,
        provider: RepositoryProvider | None = None,
        planner: ExternalPlanner | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration; read from env when omitted.
            provider: Repository provider; local filesystem and memory by default.
            planner: Optional planner for install-time-like resolution.
        """
        self._config = config or MirrorConfig.from_env()
        self._provider = provider or LocalRepositoryProvider()
        self._application = MirrorApplication(self._provider, planner)

    @property
    def config(self) -> MirrorConfig:
        """Return the runtime configuration."""
        return self._config

    @property
    def provider(self) -> RepositoryProvider:
        """Return the repository provider."""
        return self._provider

    def default_options(self, **overrides: Any) -> ArtifactMirrorOptions:
        """Build artifact mirror options seeded from the runtime config.

        Args:
            overrides: ``ArtifactMirrorOptions`` fields to replace.

        Returns:
            Mirror options.
        """
        options = ArtifactMirrorOptions(
            comparator_id=self._config.comparator_id,
            max_workers=self._config.max_workers,
            chunk_size=self._config.chunk_size,
        )
        return replace(options, **overrides)

    def run(
        self,
        request: MirrorRequest,
        cancel_token: CancellationToken | None = None,
    ) -> MirrorRunResult:
        """Execute one mirror run.

        Raises:
            MirrorError: For configuration, repository, slicing or cancellation failures.
        """
        return self._application.run(request, cancel_token)

    def slice(
        self,
        sources: Sequence[str],
        root_specs: Sequence[str] = (),
        policy: SlicingPolicy | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> SliceResult:
        """Compute a closure over metadata sources without mirroring.

        Args:
            sources: Metadata source locations.
            root_specs: ``id`` or ``id/range`` roots; every unit when empty.
            policy: Slicing policy.
            cancel_token: Optional cancellation token.

        Returns:
            Closure and slicing status.

        Raises:
            MirrorRepositoryError: If a source cannot be opened.
            MirrorSlicingError: If a lookup fails.
        """
        with ExitStack() as stack:
            repositories: list[MetadataRepository] = []
            for location in sources:
                repository = self._provider.open_metadata_source(location)
                stack.callback(repository.close)
                repositories.append(repository)
            composite = CompositeMetadataRepository(repositories)
            roots = select_roots(root_specs, composite.lookup) if root_specs else composite.query()
            return Slicer(composite.lookup, policy, cancel_token).slice(roots)

    def run_spec(self, spec_file: str) -> tuple[MirrorRunResult, ...]:
        """Execute every mirror declared in a YAML mirror-spec file."""
        return execute_mirror_spec_file(self, spec_file, self._config)
