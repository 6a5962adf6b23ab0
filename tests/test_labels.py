"""Tests for label synchronisation."""

from __future__ import annotations

import pytest
from fake_provider import FakeProvider

from motherforker.labels import sync_labels
from motherforker.models import Label, RepoRef, RepositoryHandle


@pytest.mark.unit
class TestSyncLabels:
    def setup_method(self) -> None:
        self.provider = FakeProvider()
        self.repo = self.provider.add_repo("me/project")
        self.destination = RepositoryHandle(self.provider, RepoRef("me/project"))

    def _label_writes(self) -> list[tuple[str, str]]:
        return [(call[0], call[2]) for call in self.provider.calls if call[0].endswith("_label")]

    def test_diff(self) -> None:
        existing = [Label("A", "ff0000"), Label("B", "0000ff")]
        self.repo.labels = {label.name: label for label in existing}
        desired = [Label("B", "00ff00"), Label("C", "ffff00")]

        result = sync_labels(self.destination, existing, desired)

        assert result.deleted == ["A"]
        assert result.updated == ["B"]
        assert result.created == ["C"]
        assert self._label_writes() == [("delete_label", "A"), ("update_label", "B"), ("create_label", "C")]
        assert self.repo.labels == {"B": Label("B", "00ff00"), "C": Label("C", "ffff00")}

    def test_matching_labels_not_touched(self) -> None:
        labels = [Label("bug", "d73a4a"), Label("docs", "0075ca")]
        self.repo.labels = {label.name: label for label in labels}

        result = sync_labels(self.destination, labels, [Label("bug", "#D73A4A"), Label("docs", "0075ca")])

        assert result == ([], [], [])
        assert self._label_writes() == []

    def test_names_are_case_sensitive(self) -> None:
        existing = [Label("Bug", "d73a4a")]
        self.repo.labels = {"Bug": existing[0]}

        result = sync_labels(self.destination, existing, [Label("bug", "d73a4a")])

        assert result.deleted == ["Bug"]
        assert result.created == ["bug"]

    def test_deletions_happen_first(self) -> None:
        existing = [Label("old", "111111"), Label("keep", "222222")]
        self.repo.labels = {label.name: label for label in existing}

        sync_labels(self.destination, existing, [Label("new", "333333"), Label("keep", "444444")])

        assert self._label_writes()[0] == ("delete_label", "old")
