from datetime import datetime, timezone
from unittest import mock

import pytest

from pages_preview.core.cleanup_manager import (
    CleanupManager, find_stale_branches, months_ago, parse_branch_timestamp
)
from pages_preview.core.errors import CommandError, DeployError

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def test_parse_branch_timestamp():
    assert parse_branch_timestamp("my-app-20260102-0930-a1b2c3") == datetime(2026, 1, 2, 9, 30, tzinfo=timezone.utc)
    assert parse_branch_timestamp("main") is None
    assert parse_branch_timestamp("feature-20261399-0000-a1b2c3") is None
    assert parse_branch_timestamp("my-app-20260102-0930-XYZ123") is None


@pytest.mark.parametrize("now,months,expected", [
    (datetime(2026, 10, 17), 4, datetime(2026, 6, 17)),
    (datetime(2026, 2, 10), 4, datetime(2025, 10, 10)),
    (datetime(2026, 6, 30), 4, datetime(2026, 2, 28)),
    (datetime(2024, 7, 31), 5, datetime(2024, 2, 29)),
])
def test_months_ago(now, months, expected):
    assert months_ago(now, months) == expected


def test_find_stale_branches():
    branches = [
        "main",
        "master",
        "site-20260101-0000-aaaaaa",
        "site-20260616-2359-bbbbbb",
        "site-20260618-0000-cccccc",
        "feature-login",
    ]
    stale = find_stale_branches(branches, NOW)

    assert [name for name, _created in stale] == [
        "site-20260101-0000-aaaaaa",
        "site-20260616-2359-bbbbbb",
    ]


class TestCleanupManager:
    @pytest.fixture
    def gh(self):
        with mock.patch("pages_preview.core.cleanup_manager.github.gh") as gh:
            yield gh

    def test_auto_mode_deletes_without_prompt(self, gh, sample_config):
        gh.side_effect = ["main\nsite-20260101-0000-aaaaaa\nsite-20261001-0000-bbbbbb\n", ""]

        with mock.patch("pages_preview.core.cleanup_manager.click.confirm") as confirm:
            deleted = CleanupManager(sample_config).cleanup_old_branches(auto_mode=True, now=NOW)

        assert deleted == 1
        confirm.assert_not_called()
        list_args = gh.call_args_list[0].args[0]
        assert list_args[:2] == ['api', 'repos/octo/gh-pages-previews/branches']
        assert '--paginate' in list_args
        assert gh.call_args_list[1].args == (
            ['api', '-X', 'DELETE', 'repos/octo/gh-pages-previews/git/refs/heads/site-20260101-0000-aaaaaa'],
            'ghe.example.com'
        )

    def test_interactive_cancel(self, gh, sample_config):
        gh.return_value = "site-20260101-0000-aaaaaa\n"

        with mock.patch("pages_preview.core.cleanup_manager.click.confirm", return_value=False):
            assert CleanupManager(sample_config).cleanup_old_branches(now=NOW) == 0

        assert gh.call_count == 1

    def test_failed_deletion_does_not_stop_others(self, gh, sample_config):
        gh.side_effect = [
            "a-20260101-0000-aaaaaa\nb-20260102-0000-bbbbbb\nc-20260103-0000-cccccc\n",
            "",
            CommandError("HTTP 422"),
            "",
        ]

        deleted = CleanupManager(sample_config).cleanup_old_branches(auto_mode=True, now=NOW)

        assert deleted == 2
        assert gh.call_count == 4

    def test_nothing_to_delete(self, gh, sample_config):
        gh.return_value = "main\n"
        assert CleanupManager(sample_config).cleanup_old_branches(now=NOW) == 0

    def test_listing_failure(self, gh, sample_config):
        gh.side_effect = CommandError("HTTP 404")
        with pytest.raises(DeployError):
            CleanupManager(sample_config).cleanup_old_branches(now=NOW)

    def test_requires_configuration(self):
        with pytest.raises(DeployError):
            CleanupManager(None).cleanup_old_branches()
