"""Unit tests for run-spec CLI execution."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from core.cancellation import CancellationToken
from core.status import OK_STATUS, Severity
from mirror.application import MirrorRequest, MirrorRunResult
from mirror.client import MirrorClient
from slicing.closure import Closure
from tests.fixture_paths import fixture_path
from tests.repository_builders import artifact_key, make_unit, write_file_repository


def test_cli_run_spec_runs_every_mirror(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Run-spec command should run each mirror entry in order."""
    destinations: list[str] = []

    def _fake_run(
        self: MirrorClient,
        request: MirrorRequest,
        cancel_token: CancellationToken | None = None,
    ) -> MirrorRunResult:
        destinations.append(request.destinations[0].location)
        return MirrorRunResult(severity=Severity.OK, slice_status=OK_STATUS, closure=Closure())

    monkeypatch.setattr(MirrorClient, "run", _fake_run)
    exit_code = main(["run-spec", str(fixture_path("mirror_spec/valid_mirror.yaml"))])
    output = capsys.readouterr().out.strip().splitlines()

    assert (
        exit_code == 0
        and destinations == ["repos/out", "repos/artifacts-out"]
        and output[0].split("\t")[:2] == ["mirror=1", "severity=ok"]
        and output[1].startswith("mirror=2")
    )


def test_cli_run_spec_mirrors_file_repositories(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """A spec over real repositories should mirror and report one line."""
    key = artifact_key("app")
    source = write_file_repository(
        tmp_path / "source", [make_unit("app", artifacts=[key])], {key: b"app"}
    )
    spec_path = tmp_path / "mirror.yaml"
    spec_path.write_text(
        "\n".join(
            [
                "version: 1",
                "mirrors:",
                f"  - sources: [{source}]",
                f"    destination: {tmp_path / 'mirror'}",
                "    options:",
                "      validate: true",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    exit_code = main(["run-spec", str(spec_path)])
    output = capsys.readouterr().out.strip()

    assert exit_code == 0 and output == (
        "mirror=1\tseverity=ok\tclosure=1\tartifact_tasks=1\tcopied=1\terrors=0"
        "\tmetadata_mirrored=true"
    )


def test_cli_run_spec_invalid_spec_prints_error(capsys: pytest.CaptureFixture[str]) -> None:
    """Invalid specs should print a mirror error and exit non-zero."""
    exit_code = main(["run-spec", str(fixture_path("mirror_spec/unknown_option.yaml"))])
    assert exit_code == 1 and capsys.readouterr().out.startswith("mirror_error=")
