"""Tests for slug helpers."""

from __future__ import annotations

from documentor.slug import node_id, slugify


def test_slugify_collapses_punctuation() -> None:
    assert slugify("GET /api/users/{id}") == "get-api-users-id"
    assert slugify("  User List  ") == "user-list"
    assert slugify("***") == ""


def test_node_id_is_stable_and_distinct() -> None:
    first = node_id("src/a-b.js")
    second = node_id("src/a_b.js")

    assert first == node_id("src/a-b.js")
    assert first != second
    assert first.startswith("n_src_a_b_js_")
    assert node_id("").startswith("n_root_")
