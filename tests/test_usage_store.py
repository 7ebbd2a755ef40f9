"""Tests for the in-memory user and usage store."""

import random

import pytest

from metadata_extractor.exceptions import InputValidationError, NotFoundError
from metadata_extractor.models.usage import Role
from metadata_extractor.db.usage_store import UsageStore


def test_seed_data(usage_store) -> None:
    users = usage_store.list_users()

    assert [u.email for u in users] == ["admin@example.com", "user@example.com", "inactive@example.com"]
    assert usage_store.current_user().role == Role.ADMIN
    assert [log.id for log in usage_store.list_logs()] == ["log2", "log1", "log3"]
    assert [log.id for log in usage_store.list_logs(2)] == ["log2", "log3"]


def test_record_usage_charges_user_and_logs() -> None:
    store = UsageStore(rng=random.Random(7))
    before = store.get_user(2).tokens_used

    usage = store.record_usage(2, "Metadata Extractor")

    assert 500 <= usage.prompt_tokens < 3500
    assert 300 <= usage.response_tokens < 2300
    assert store.get_user(2).tokens_used == before + usage.total_tokens
    assert store.list_logs(2)[0].prompt_tokens == usage.prompt_tokens


def test_budget_exhausted_at_cap(usage_store) -> None:
    user = usage_store.update_user(2, tokens_used=50000)

    assert user.budget_exhausted
    assert usage_store.get_user(2).budget_exhausted


def test_add_user_assigns_next_id(usage_store) -> None:
    user = usage_store.add_user("new@example.com", Role.USER, 10000)

    assert user.id == 4
    assert user.tokens_used == 0
    with pytest.raises(InputValidationError):
        usage_store.add_user("new@example.com", Role.USER, 10000)


def test_cannot_delete_current_user(usage_store) -> None:
    with pytest.raises(InputValidationError, match="currently logged-in"):
        usage_store.delete_user(1)

    usage_store.delete_user(3)
    with pytest.raises(NotFoundError):
        usage_store.get_user(3)


def test_switch_current_user(usage_store) -> None:
    usage_store.set_current_user(2)

    assert usage_store.current_user().email == "user@example.com"
    with pytest.raises(NotFoundError):
        usage_store.set_current_user(99)
