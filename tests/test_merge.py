"""
Tests for merging a duplicate group into one record.
"""

import pytest

from crowdscore.domain.errors import MergeError
from crowdscore.domain.merge import CONCAT_SEPARATOR, field_options, merge_submissions
from crowdscore.domain.models import SubmissionStatus

from .helpers import make_project


@pytest.fixture
def group():
    return [
        make_project("1", rating=4, comment="primeiro", status=SubmissionStatus.PENDING,
                     submitter_email="a@email.com", would_buy_again=True),
        make_project("2", rating=2, actual="2024-02-01", company_reply="resposta",
                     submitter_email="b@email.com", would_buy_again=False),
        make_project("3", rating=5, comment="terceiro", status=SubmissionStatus.REJECTED,
                     submitter_email="c@email.com"),
    ]


class TestMergeSubmissions:
    """Test per-field merge strategies."""

    def test_rating_is_averaged(self, group):
        merged = merge_submissions(group, {}, "m1")
        assert merged.rating == 3.67

    def test_text_fields_concatenate_in_order(self, group):
        merged = merge_submissions(group, {}, "m1")
        assert merged.comment == f"primeiro{CONCAT_SEPARATOR}terceiro"
        assert merged.company_reply == "resposta"
        assert merged.user_rebuttal is None

    def test_selected_fields_default_to_first_member(self, group):
        merged = merge_submissions(group, {}, "m1")
        assert merged.submitter_email == "a@email.com"
        assert merged.actual_date is None
        assert merged.would_buy_again is True

    def test_selection_picks_member_value(self, group):
        merged = merge_submissions(group, {"actual_date": "2", "submitter_email": "3"}, "m1")
        assert merged.actual_date == "2024-02-01"
        assert merged.submitter_email == "c@email.com"

    def test_merged_record_is_approved_with_new_id(self, group):
        merged = merge_submissions(group, {}, "merged-1")
        assert merged.id == "merged-1"
        assert merged.status is SubmissionStatus.APPROVED
        assert merged.rejection_reason is None


class TestMergeErrors:
    """Test rejected merge requests."""

    def test_empty_group(self):
        with pytest.raises(MergeError):
            merge_submissions([], {}, "m1")

    def test_foreign_member_id(self, group):
        with pytest.raises(MergeError):
            merge_submissions(group, {"company_name": "99"}, "m1")

    def test_unknown_field(self, group):
        with pytest.raises(MergeError):
            merge_submissions(group, {"status": "1"}, "m1")

    def test_averaged_field_cannot_be_selected(self, group):
        with pytest.raises(MergeError):
            merge_submissions(group, {"rating": "1"}, "m1")


class TestFieldOptions:
    """Test choices offered for selectable fields."""

    def test_distinct_values_with_member_ids(self, group):
        assert field_options(group, "submitter_email") == [
            ("a@email.com", "1"), ("b@email.com", "2"), ("c@email.com", "3"),
        ]

    def test_empty_values_are_skipped(self, group):
        assert field_options(group, "actual_date") == [("2024-02-01", "2")]

    def test_shared_value_appears_once(self, group):
        assert len(field_options(group, "company_name")) == 1
