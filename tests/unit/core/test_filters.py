"""Unit tests for filter expression evaluation."""

from __future__ import annotations

import pytest

from core.errors import MirrorModelError
from core.filters import evaluate_filter

_LINUX_GTK = {"os": "linux", "ws": "gtk", "arch": "x86_64"}


def test_evaluate_filter_matches_simple_equality() -> None:
    """Equality filters should compare against environment values."""
    assert evaluate_filter("(os=linux)", _LINUX_GTK) and not evaluate_filter(
        "(os=win32)", _LINUX_GTK
    )


def test_evaluate_filter_handles_nested_composites() -> None:
    """And, or and not should combine child results."""
    expression = "(&(os=linux)(|(ws=cocoa)(ws=gtk))(!(arch=ppc)))"
    assert evaluate_filter(expression, _LINUX_GTK)


def test_evaluate_filter_supports_presence_and_wildcards() -> None:
    """``key=*`` tests presence and ``*`` inside values acts as a wildcard."""
    assert (
        evaluate_filter("(ws=*)", _LINUX_GTK)
        and not evaluate_filter("(nl=*)", _LINUX_GTK)
        and evaluate_filter("(arch=x86*)", _LINUX_GTK)
    )


def test_evaluate_filter_orders_versions_numerically() -> None:
    """Ordering operators should compare version-like values as versions."""
    environment = {"level": "10"}
    assert evaluate_filter("(level>=9)", environment) and not evaluate_filter(
        "(level<=9)", environment
    )


def test_evaluate_filter_missing_key_does_not_match() -> None:
    """Comparisons on absent keys should not match."""
    assert not evaluate_filter("(nl=en)", _LINUX_GTK)


def test_evaluate_filter_blank_expression_matches() -> None:
    """Blank filters should always match."""
    assert evaluate_filter(None, {}) and evaluate_filter("  ", {})


def test_evaluate_filter_tolerates_whitespace_between_operands() -> None:
    """Whitespace between nested operands should be ignored."""
    assert evaluate_filter("( & (os=linux) (ws=gtk) )", _LINUX_GTK)


@pytest.mark.parametrize("expression", ["(os=linux", "os=linux", "(&)", "(os=linux))"])
def test_evaluate_filter_rejects_malformed_expression(expression: str) -> None:
    """Malformed expressions should raise a model error."""
    with pytest.raises(MirrorModelError):
        evaluate_filter(expression, _LINUX_GTK)
    assert True
