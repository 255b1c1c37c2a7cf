"""
Tests for crowdfunding link normalization and duplicate grouping.
"""

import pytest

from crowdscore.domain.duplicates import find_duplicate_groups, group_key, normalize_url
from crowdscore.domain.models import SubmissionStatus

from .helpers import make_project


class TestNormalizeUrl:
    """Test link normalization."""

    def test_trailing_slash_is_ignored(self):
        assert normalize_url("http://x.com/a") == normalize_url("http://x.com/a/") == "x.com/a"

    def test_query_and_fragment_are_ignored(self):
        assert normalize_url("https://x.com/a?ref=mail#top") == "x.com/a"

    def test_scheme_does_not_matter(self):
        assert normalize_url("http://x.com/a") == normalize_url("https://x.com/a")

    def test_bare_host(self):
        assert normalize_url("https://x.com") == "x.com"

    @pytest.mark.parametrize("link", ["", "not a url", "x.com/a", "http://[broken"])
    def test_unparsable_links(self, link):
        assert normalize_url(link) is None


class TestFindDuplicateGroups:
    """Test duplicate detection."""

    def test_groups_links_that_normalize_alike(self):
        projects = [
            make_project("1", link="http://x.com/a"),
            make_project("2", link="http://x.com/a/"),
            make_project("3", link="http://x.com/b"),
        ]
        groups = find_duplicate_groups(projects)
        assert [[p.id for p in g] for g in groups] == [["1", "2"]]

    def test_mixed_statuses_are_grouped(self):
        projects = [
            make_project("1", link="http://x.com/a", status=SubmissionStatus.APPROVED),
            make_project("2", link="http://x.com/a", status=SubmissionStatus.PENDING),
            make_project("3", link="http://x.com/a", status=SubmissionStatus.REJECTED),
        ]
        assert len(find_duplicate_groups(projects)[0]) == 3

    def test_unparsable_links_never_group(self):
        projects = [
            make_project("1", link="sem link"),
            make_project("2", link="sem link"),
        ]
        assert find_duplicate_groups(projects) == []

    def test_dismissed_key_hides_group(self):
        projects = [
            make_project("1", link="http://x.com/a"),
            make_project("2", link="http://x.com/a"),
        ]
        assert find_duplicate_groups(projects, {"x.com/a"}) == []

    def test_group_key_is_normalized_link(self):
        group = [make_project("1", link="https://x.com/a/?utm=1")]
        assert group_key(group) == "x.com/a"
        assert group_key([]) is None
