"""Unit tests for mint access policies."""
from __future__ import annotations

import pytest

from eth2x.access import Allowlisted, OpenToAll, build_policy, require_allowed
from eth2x.errors import Unauthorized


class TestPolicies:
    def test_open_allows_anyone(self) -> None:
        require_allowed(OpenToAll(), "0xANYONE")

    def test_allowlist_is_case_insensitive(self) -> None:
        policy = Allowlisted(frozenset({"0xAbC"}))
        assert policy.is_allowed("0xabc")
        assert policy.is_allowed("0XABC")

    def test_allowlist_rejects_others(self) -> None:
        with pytest.raises(Unauthorized, match="0xEVE"):
            require_allowed(Allowlisted(frozenset({"0xALICE"})), "0xEVE")


class TestBuildPolicy:
    def test_open(self) -> None:
        assert isinstance(build_policy("open"), OpenToAll)

    def test_allowlist(self) -> None:
        policy = build_policy("allowlist", ("0xALICE",))
        assert isinstance(policy, Allowlisted)
        assert policy.is_allowed("0xalice")

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            build_policy("owner")
