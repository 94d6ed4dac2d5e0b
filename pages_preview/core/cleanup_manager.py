import calendar
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

import click

from . import github
from .errors import CommandError, DeployError
from .utils import print_error, print_info, print_success, print_warning
from ..config.constants import CLEANUP_AGE_MONTHS, PROTECTED_BRANCHES

BRANCH_TIMESTAMP_RE = re.compile(r'-(\d{8}-\d{4})-[a-f0-9]{6}$')


def parse_branch_timestamp(branch_name: str) -> Optional[datetime]:
    """UTC creation time encoded in a preview branch name"""
    match = BRANCH_TIMESTAMP_RE.search(branch_name)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), '%Y%m%d-%H%M').replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def months_ago(now: datetime, months: int) -> datetime:
    """Same day-of-month `months` earlier, clamped to the month's length"""
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def find_stale_branches(branch_names: Iterable[str], now: Optional[datetime] = None,
                        months: int = CLEANUP_AGE_MONTHS) -> List[Tuple[str, datetime]]:
    """Preview branches created before the cutoff, oldest first"""
    cutoff = months_ago(now or datetime.now(timezone.utc), months)
    stale = []
    for name in branch_names:
        if name in PROTECTED_BRANCHES:
            continue
        created = parse_branch_timestamp(name)
        if created and created < cutoff:
            stale.append((name, created))
    return sorted(stale, key=lambda item: item[1])


class CleanupManager:
    """Deletes preview branches older than the retention period"""

    def __init__(self, config: Optional[Dict]):
        self.config = config

    def _repo_path(self) -> str:
        return f"repos/{self.config['username']}/{self.config['repository']}"

    def list_branches(self) -> List[str]:
        output = github.gh(
            ['api', f"{self._repo_path()}/branches", '--paginate', '--jq', '.[].name'],
            self.config.get('hostname')
        )
        return [line.strip() for line in output.splitlines() if line.strip()]

    def delete_branch(self, branch_name: str) -> None:
        github.gh(
            ['api', '-X', 'DELETE', f"{self._repo_path()}/git/refs/heads/{branch_name}"],
            self.config.get('hostname')
        )

    def cleanup_old_branches(self, auto_mode: bool = False, now: Optional[datetime] = None) -> int:
        """Delete stale branches; returns how many were deleted"""
        if not self.config:
            raise DeployError("No configuration found. Please run setup first.")

        if not auto_mode:
            print_info("Cleaning up old deployment branches...")

        try:
            stale = find_stale_branches(self.list_branches(), now)
        except CommandError as e:
            raise DeployError(f"Could not list branches: {e}")

        if not stale:
            if not auto_mode:
                print_success(f"No branches older than {CLEANUP_AGE_MONTHS} months found.")
            return 0

        if not auto_mode:
            print_info(f"Found {len(stale)} branches older than {CLEANUP_AGE_MONTHS} months:")
            for name, created in stale:
                click.echo(f"   - {name} ({created.strftime('%Y-%m-%d')})")
            if not click.confirm(f"Delete these {len(stale)} old branches?", default=False):
                print_warning("Cleanup cancelled.")
                return 0

        print_info(f"Deleting {len(stale)} old branches...")
        deleted = 0
        for name, _created in stale:
            try:
                self.delete_branch(name)
                deleted += 1
                if not auto_mode:
                    print_success(f"Deleted: {name}")
            except CommandError as e:
                print_error(f"Failed to delete {name}: {e}")

        print_success(f"Cleanup complete! Deleted {deleted} old branches.")
        return deleted
