"""Unit tests for install-time-like planner resolution."""

from __future__ import annotations

import pytest

from core.errors import MirrorSlicingError
from core.types import SlicingPolicy, Unit
from slicing.planner import ChangeRequest, PlannerProfile, ProvisioningPlan, resolve_with_planner
from tests.repository_builders import make_unit


class _FakePlanner:
    def __init__(self, extra: list[Unit], installer: list[Unit] | None = None) -> None:
        self.extra = extra
        self.installer = installer
        self.profiles: list[PlannerProfile] = []

    def create_change_request(self, profile: PlannerProfile) -> ChangeRequest:
        self.profiles.append(profile)
        return ChangeRequest(profile=profile)

    def get_provisioning_plan(self, request: ChangeRequest) -> ProvisioningPlan:
        return ProvisioningPlan(
            additions=[*request.additions, *self.extra],
            installer_additions=self.installer,
        )


class _FailingPlanner:
    def create_change_request(self, profile: PlannerProfile) -> ChangeRequest:
        return ChangeRequest(profile=profile)

    def get_provisioning_plan(self, request: ChangeRequest) -> ProvisioningPlan:
        raise RuntimeError("resolver exploded")


def test_resolve_with_planner_returns_plan_and_installer_additions() -> None:
    """Closure should union plan additions with installer additions."""
    root = make_unit("app")
    planner = _FakePlanner([make_unit("lib")], installer=[make_unit("installer")])

    closure = resolve_with_planner(planner, [root], SlicingPolicy(environment={"os": "linux"}))

    assert (
        {str(unit) for unit in closure} == {"app@1.0.0", "lib@1.0.0", "installer@1.0.0"}
        and planner.profiles[0].profile_id.startswith("mirror-")
        and planner.profiles[0].environment == {"os": "linux"}
    )


def test_resolve_with_planner_without_installer_plan() -> None:
    """A missing installer plan should contribute nothing."""
    closure = resolve_with_planner(_FakePlanner([]), [make_unit("app")], SlicingPolicy())
    assert len(closure) == 1


def test_resolve_with_planner_wraps_failures() -> None:
    """Planner exceptions should become slicing errors."""
    with pytest.raises(MirrorSlicingError):
        resolve_with_planner(_FailingPlanner(), [make_unit("app")], SlicingPolicy())
    assert True
