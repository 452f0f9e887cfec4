"""Install-time-like resolution through an external planner.

The planner is a black box: it receives a change request for a throwaway
profile and returns a provisioning plan whose additions become the closure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import Iterable, Mapping, Protocol, Sequence

from core.constants import PLANNER_PROFILE_PREFIX
from core.errors import MirrorError, MirrorSlicingError
from core.logging_config import get_logger
from core.types import SlicingPolicy, Unit
from slicing.closure import Closure

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PlannerProfile:
    """Profile the planner resolves against."""

    profile_id: str
    environment: Mapping[str, str] = field(default_factory=dict)


@dataclass
class ChangeRequest:
    """Units the planner is asked to add to a profile."""

    profile: PlannerProfile
    additions: list[Unit] = field(default_factory=list)

    def add_all(self, units: Iterable[Unit]) -> None:
        """Request installation of every unit."""
        self.additions.extend(units)


@dataclass(frozen=True)
class ProvisioningPlan:
    """Planner output consumed by the mirror."""

    additions: Sequence[Unit]
    installer_additions: Sequence[Unit] | None = None


class ExternalPlanner(Protocol):
    """Planner contract used for install-time-like resolution."""

    def create_change_request(self, profile: PlannerProfile) -> ChangeRequest: ...

    def get_provisioning_plan(self, request: ChangeRequest) -> ProvisioningPlan: ...


def resolve_with_planner(
    planner: ExternalPlanner,
    roots: Sequence[Unit],
    policy: SlicingPolicy,
) -> Closure:
    """Resolve roots with the planner and return the planned additions.

    Args:
        planner: External planner service.
        roots: Units requested for installation.
        policy: Slicing policy supplying the profile environment.

    Returns:
        Closure of plan additions and installer-plan additions.

    Raises:
        MirrorSlicingError: If the planner fails.
    """
    profile = PlannerProfile(
        profile_id=f"{PLANNER_PROFILE_PREFIX}{int(time.time() * 1000)}",
        environment=dict(policy.environment or {}),
    )
    try:
        request = planner.create_change_request(profile)
        request.add_all(roots)
        plan = planner.get_provisioning_plan(request)
    except MirrorError:
        raise
    except Exception as error:
        raise MirrorSlicingError(
            f"External planner failed for profile {profile.profile_id}: {error}. "
            "Retry without install-time-like resolution to use the slicer."
        ) from error
    units = list(plan.additions)
    if plan.installer_additions is not None:
        units.extend(plan.installer_additions)
    closure = Closure(units)
    _LOGGER.info(
        "planner_resolution_completed",
        profile_id=profile.profile_id,
        root_count=len(roots),
        unit_count=len(closure),
    )
    return closure
