"""Tests for settings and the escrow policy built from them."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from htlc_escrow.config import Settings
from htlc_escrow.domain.escrow import EscrowPolicy


class TestSettings:
    """Defaults and environment overrides."""

    def test_defaults_keep_permissive_policy(self) -> None:
        policy = EscrowPolicy.from_settings(Settings(_env_file=None))
        assert policy == EscrowPolicy()

    def test_policy_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("HASH_ALGORITHM", "blake2b")
        monkeypatch.setenv("REQUIRE_SAFETY_DEPOSIT", "true")
        monkeypatch.setenv("ENFORCE_WITHDRAWAL_DEADLINE", "1")

        policy = EscrowPolicy.from_settings(Settings(_env_file=None))
        assert policy.hash_algorithm == "blake2b"
        assert policy.require_safety_deposit is True
        assert policy.enforce_withdrawal_deadline is True

    def test_unknown_hash_algorithm_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, hash_algorithm="md5")

    def test_is_development(self) -> None:
        assert Settings(_env_file=None, app_env="development").is_development
        assert not Settings(_env_file=None, app_env="production").is_development


class TestPolicy:
    """Building an EscrowPolicy from settings."""

    def test_unknown_algorithm_rejected(self) -> None:
        with pytest.raises(ValueError):
            EscrowPolicy(hash_algorithm="md5")
