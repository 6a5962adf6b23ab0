"""Tests for the number-preserving issue replicator."""

from __future__ import annotations

from dataclasses import replace

import pytest
from fake_provider import FakeProvider, FakeTransportError, make_comment, make_issue

from motherforker import (
    MalformedIssueError,
    NumberingConflictError,
    NumberingGapError,
    NumberMismatchError,
    OrderingError,
)
from motherforker.issue_builder import is_migrated_body
from motherforker.models import Issue, RepoRef, RepositoryHandle
from motherforker.replicator import PLACEHOLDER_COMMENT, Action, NumberingReplicator


@pytest.mark.unit
class TestNumberingReplicator:
    """Test the create-or-skip decision procedure against an in-memory destination."""

    def setup_method(self) -> None:
        self.provider = FakeProvider()
        self.provider.add_repo("me/project")
        self.destination = RepositoryHandle(self.provider, RepoRef("me/project"))

    def _dest_issue(self, number: int) -> Issue:
        return self.provider.repos["me/project"].issues[number]

    def _dest_comments(self, number: int) -> list[str]:
        return [comment.body for comment in self.provider.repos["me/project"].comments[number]]

    def _replicator(self, **kwargs: bool) -> NumberingReplicator:
        return NumberingReplicator(self.destination, **kwargs)

    def test_scenario_open_and_closed_issue(self) -> None:
        """Issue #1 open without comments, #2 closed with one comment, into an empty destination."""
        issue_1 = make_issue(1)
        issue_2 = replace(make_issue(2, closed=True), comments=(make_comment(2, 1),))

        result = self._replicator().replicate([issue_1, issue_2])

        assert result.created == [1, 2]
        assert result.skipped == []
        assert result.last_number == 2
        assert self._dest_issue(1).body.startswith("Issue originally opened by @alice on 2014-03-02 at 09:30 (UTC)")
        assert not self._dest_issue(1).closed
        assert self._dest_comments(1) == []
        assert self._dest_issue(2).closed
        comments = self._dest_comments(2)
        assert len(comments) == 2
        assert comments[0].startswith("Comment originally posted by @bob on")
        assert comments[0].endswith("Comment 1 on #2")
        assert comments[1] == "Issue originally closed on 2014-03-05 at 09:30 (UTC)"

    def test_numbering_preserved(self) -> None:
        issues = [make_issue(n) for n in range(1, 6)]

        self._replicator().replicate(issues)

        for issue in issues:
            assert self._dest_issue(issue.number).title == issue.title
            assert is_migrated_body(self._dest_issue(issue.number).body, issue.url)

    def test_second_run_creates_nothing(self) -> None:
        issues = [
            make_issue(1),
            replace(make_issue(2, closed=True), comments=(make_comment(2, 1), make_comment(2, 2))),
            replace(make_issue(3), comments=(make_comment(3, 1),)),
        ]
        self._replicator().replicate(issues)
        writes_after_first_run = len(self.provider.calls) - len(self.provider.writes("get_issue"))

        result = self._replicator().replicate(issues)

        assert result.created == []
        assert result.skipped == [1, 2, 3]
        assert result.repaired == []
        assert len(self.provider.calls) - len(self.provider.writes("get_issue")) == writes_after_first_run
        assert len(self._dest_comments(2)) == 3

    def test_issues_created_in_source_order(self) -> None:
        issues = [make_issue(n) for n in range(1, 5)]

        self._replicator().replicate(issues)

        titles = [call[2] for call in self.provider.writes("create_issue")]
        assert titles == ["Issue 1", "Issue 2", "Issue 3", "Issue 4"]

    def test_gap_raises_and_creates_nothing(self) -> None:
        self._replicator().replicate([make_issue(n) for n in range(1, 5)])
        created_before = len(self.provider.writes("create_issue"))

        with pytest.raises(NumberingGapError, match="has no #5") as exc_info:
            self._replicator().replicate([make_issue(6)])

        assert exc_info.value.issue.number == 6
        assert len(self.provider.writes("create_issue")) == created_before
        assert 6 not in self.provider.repos["me/project"].issues

    def test_first_issue_needs_no_predecessor(self) -> None:
        decision = self._replicator().decide(make_issue(1))

        assert decision.action is Action.CREATE
        assert decision.existing is None

    def test_conflict_with_unrelated_issue(self) -> None:
        self.provider.create_issue(RepoRef("me/project"), "Someone else's issue", "Unrelated")

        with pytest.raises(NumberingConflictError, match="Someone else's issue") as exc_info:
            self._replicator().replicate([make_issue(1)])

        assert exc_info.value.issue.url == "https://github.com/octo/project/issues/1"
        assert "interrupted" not in str(exc_info.value)

    def test_conflict_with_empty_body_points_at_interrupted_run(self) -> None:
        self.provider.create_issue(RepoRef("me/project"), "Issue 1", "")

        with pytest.raises(NumberingConflictError, match="previous run was probably interrupted") as exc_info:
            self._replicator().replicate([make_issue(1)])

        assert "https://github.com/octo/project/issues/1" in str(exc_info.value)

    def test_conflict_when_body_links_to_other_issue(self) -> None:
        """A destination issue linking to source issue #10 is not the migration of #1."""
        self.provider.create_issue(
            RepoRef("me/project"), "Issue 1", "See https://github.com/octo/project/issues/10 for details"
        )

        with pytest.raises(NumberingConflictError):
            self._replicator().replicate([make_issue(1)])

    def test_number_mismatch(self) -> None:
        self.provider.force_number = 7

        with pytest.raises(NumberMismatchError, match="expected 1, got 7"):
            self._replicator().replicate([make_issue(1)])

        assert self.provider.writes("update_issue") == []

    def test_out_of_order_source_rejected(self) -> None:
        with pytest.raises(OrderingError, match="#1 after #1"):
            self._replicator().replicate([make_issue(1), make_issue(1)])

        assert len(self.provider.writes("create_issue")) == 1

    def test_placeholder_then_edit(self) -> None:
        issue = replace(make_issue(1, labels=frozenset({"bug"})), comments=(make_comment(1, 1),))

        self._replicator().replicate([issue])

        _, _, _, initial_body = self.provider.writes("create_issue")[0]
        assert initial_body == ""
        patch = self.provider.writes("update_issue")[0][3]
        assert patch.body is not None
        assert is_migrated_body(patch.body, issue.url)
        assert patch.state == "open"
        assert patch.labels == frozenset({"bug"})
        assert self.provider.writes("create_comment")[0][3] == PLACEHOLDER_COMMENT
        assert self.provider.writes("update_comment")[0][4].endswith("Comment 1 on #1")

    def test_direct_creation_without_suppression(self) -> None:
        issue = replace(make_issue(1), comments=(make_comment(1, 1),))

        self._replicator(suppress_notifications=False).replicate([issue])

        assert is_migrated_body(self.provider.writes("create_issue")[0][3], issue.url)
        assert self.provider.writes("update_issue")[0][3].body is None
        assert self.provider.writes("update_comment") == []
        assert self.provider.writes("create_comment")[0][3].endswith("Comment 1 on #1")

    def test_pull_request_uses_pull_request_creation(self) -> None:
        self._replicator().replicate([make_issue(1), make_issue(2, is_pull_request=True)])

        assert len(self.provider.writes("create_issue")) == 1
        (_, _, title, body, head, base) = self.provider.writes("create_pull_request")[0]
        assert (title, body, head, base) == ("Issue 2", "", "octo:feature", "main")
        assert self._dest_issue(2).body.startswith("Pull request originally opened by @alice")

    def test_pull_request_without_branches_rejected(self) -> None:
        pull = replace(make_issue(1, is_pull_request=True), head_ref=None)

        with pytest.raises(MalformedIssueError, match="head/base"):
            self._replicator().replicate([pull])

        assert self.provider.writes("create_pull_request") == []

    def test_transport_errors_propagate_unchanged(self) -> None:
        self.provider.fail_on["create_issue"] = 2

        with pytest.raises(FakeTransportError):
            self._replicator().replicate([make_issue(1), make_issue(2)])

        assert 1 in self.provider.repos["me/project"].issues

    def test_resume_completes_interrupted_comments(self) -> None:
        comments = tuple(make_comment(1, index) for index in range(1, 4))
        issue = replace(make_issue(1, closed=True), comments=comments)
        self.provider.fail_on["update_comment"] = 2

        with pytest.raises(FakeTransportError):
            self._replicator().replicate([issue])
        assert self._dest_comments(1)[-1] == PLACEHOLDER_COMMENT

        result = self._replicator().replicate([issue])

        assert result.skipped == [1]
        assert result.repaired == [1]
        bodies = self._dest_comments(1)
        assert len(bodies) == 4
        for body, comment in zip(bodies, comments, strict=False):
            assert is_migrated_body(body, comment.url)
        assert bodies[-1].startswith("Issue originally closed on")
        assert self._dest_issue(1).closed

    def test_resume_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        issue = replace(make_issue(1), comments=(make_comment(1, 1), make_comment(1, 2)))
        self.provider.fail_on["create_comment"] = 2
        with pytest.raises(FakeTransportError):
            self._replicator().replicate([issue])

        with caplog.at_level("WARNING"):
            self._replicator().replicate([issue])

        assert "only partly migrated" in caplog.text
        assert len(self._dest_comments(1)) == 2

    def test_resume_disabled_skips_silently(self) -> None:
        issue = replace(make_issue(1), comments=(make_comment(1, 1), make_comment(1, 2)))
        self.provider.fail_on["create_comment"] = 2
        with pytest.raises(FakeTransportError):
            self._replicator().replicate([issue])

        result = self._replicator(verify_comments=False).replicate([issue])

        assert result.skipped == [1]
        assert result.repaired == []
        assert len(self._dest_comments(1)) == 1

    def test_unchecked_skip_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        self._replicator().replicate([make_issue(1)])

        with caplog.at_level("INFO", logger="motherforker.replicator"):
            self._replicator(verify_comments=False).replicate([make_issue(1)])

        assert "Skipping issue #1: already migrated, comments not checked" in caplog.text
