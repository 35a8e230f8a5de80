import pytest
from pydantic import ValidationError

from wallet_auth.config import Settings


def test_entry_point_address_alias(monkeypatch):
    """EntryPoint address should load from the unprefixed legacy alias when present."""

    monkeypatch.delenv("WALLET_AUTH_ENTRY_POINT_ADDRESS", raising=False)
    monkeypatch.setenv("ENTRYPOINT_ADDRESS", "0x0000000071727De22E5E9d8BAf0edAc6f37da032")

    settings = Settings()

    assert settings.entry_point_address == "0x0000000071727De22E5E9d8BAf0edAc6f37da032"


def test_prefixed_env_overrides(monkeypatch):
    """Prefixed environment variables configure the predicate limits."""

    monkeypatch.setenv("WALLET_AUTH_PREDICATE_MAX_DEPTH", "3")
    monkeypatch.setenv("WALLET_AUTH_REGISTRY_PAGE_LIMIT", "25")

    settings = Settings()

    assert settings.predicate_max_depth == 3
    assert settings.registry_page_limit == 25


def test_limits_must_be_positive(monkeypatch):
    monkeypatch.setenv("WALLET_AUTH_PREDICATE_MAX_NODES", "0")

    with pytest.raises(ValidationError):
        Settings()
