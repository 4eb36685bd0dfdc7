"""Tests for user group expansion."""

import itertools

import pytest

from keyper_service.directory import UserGroup, expand_users
from keyper_service.errors import UnknownGroup

GROUPS = {
    "admins": UserGroup(name="admins", members=["alice", "bob"]),
    "ops": UserGroup(name="ops", members=["carol", "bob"]),
    "nested": UserGroup(name="nested", members=["@admins"]),
}


class TestExpandUsers:
    def test_plain_names_are_sorted_and_deduplicated(self):
        assert expand_users(["carol", "alice", "bob", "alice"], GROUPS) == ["alice", "bob", "carol"]

    def test_plain_names_are_order_independent(self):
        names = ["dave", "alice", "carol", "alice"]
        results = {tuple(expand_users(list(p), GROUPS)) for p in itertools.permutations(names)}
        assert results == {("alice", "carol", "dave")}

    def test_idempotent(self):
        once = expand_users(["@ops", "alice"], GROUPS)
        assert expand_users(once, GROUPS) == once

    def test_group_and_literal(self):
        assert expand_users(["@admins", "carol"], GROUPS) == ["alice", "bob", "carol"]

    def test_duplicates_across_literal_and_group_collapse(self):
        assert expand_users(["alice", "@admins"], GROUPS) == ["alice", "bob"]

    def test_overlapping_groups(self):
        assert expand_users(["@admins", "@ops"], GROUPS) == ["alice", "bob", "carol"]

    def test_groups_expand_one_level_only(self):
        assert expand_users(["@nested"], GROUPS) == ["@admins"]

    def test_empty(self):
        assert expand_users([], GROUPS) == []

    @pytest.mark.parametrize("groups", [{}, GROUPS])
    def test_unknown_group(self, groups):
        with pytest.raises(UnknownGroup) as exc_info:
            expand_users(["@nonexistent"], groups)
        assert exc_info.value.reference == "@nonexistent"

    def test_unknown_group_fails_even_with_valid_references(self):
        with pytest.raises(UnknownGroup):
            expand_users(["alice", "@admins", "@nonexistent"], GROUPS)
