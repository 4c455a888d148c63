"""
Tests for configuration parsing
"""

import pytest

from config import parse_community_role_map


class TestCommunityRoleMap:

    def test_parses_pairs_in_order(self):
        raw = "test1:1351429786941128745, test2:1351429981917544458"

        assert parse_community_role_map(raw) == [
            ("test1", 1351429786941128745),
            ("test2", 1351429981917544458),
        ]

    def test_blank_means_no_mappings(self):
        assert parse_community_role_map("") == []
        assert parse_community_role_map(" , ") == []

    @pytest.mark.parametrize("raw", ["test1", "test1:", ":123", "test1:abc"])
    def test_malformed_entries_raise(self, raw):
        with pytest.raises(ValueError):
            parse_community_role_map(raw)
