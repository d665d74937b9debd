"""
GitHub activity sync for NicheStack Manager.

Reads each linked repository's last push time from the GitHub REST API and
stores it on the project, so pushes count as maintenance activity.

Run from cron with:  nichestack-sync [--config PATH]
"""

import argparse
import logging
import sys
import time
from datetime import datetime
from typing import Dict, List, Optional

import requests
from cryptography.fernet import InvalidToken

from .config import AppConfig, configure_logging, load_config
from .database import configure_database, get_session, init_db, get_project_by_id
from .models import GitHubAccount, Project
from .timeutil import to_datetime

logger = logging.getLogger(__name__)

# Per-project failures recorded as an 'error' result instead of aborting a sync
SYNC_ERRORS = (requests.RequestException, InvalidToken, ValueError)

GITHUB_API_URL = 'https://api.github.com'
USER_AGENT = 'NicheStack-Manager'


def parse_github_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp such as '2024-05-01T12:00:00Z' to local time."""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return to_datetime(datetime.fromisoformat(value))


class GitHubClient:
    """Minimal GitHub REST client."""

    def __init__(self, base_url: str = GITHUB_API_URL, timeout: int = 10):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        headers = {
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': USER_AGENT,
        }
        if token:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    def get_pushed_at(self, owner: str, repo: str, token: Optional[str] = None) -> Optional[datetime]:
        """
        Get the last push time of a repository.

        Returns None when the API responds with an error status.
        Network failures propagate as requests exceptions.
        """
        response = requests.get(
            f'{self.base_url}/repos/{owner}/{repo}',
            headers=self._headers(token),
            timeout=self.timeout,
        )
        if not response.ok:
            logger.error("GitHub API error for %s/%s: %s", owner, repo, response.status_code)
            return None

        pushed_at = response.json().get('pushed_at')
        if not pushed_at:
            return None
        return parse_github_timestamp(pushed_at)

    def list_repos(self, token: str) -> List[Dict]:
        """List repositories visible to a token, most recently updated first."""
        try:
            response = requests.get(
                f'{self.base_url}/user/repos',
                params={'per_page': 100, 'sort': 'updated'},
                headers=self._headers(token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Failed to fetch GitHub repos: %s", e)
            return []

        if not response.ok:
            logger.error("Failed to fetch repos: %s %s", response.status_code, response.reason)
            return []
        return response.json()


def _token_for(project: Project, fallback: Optional[str]) -> Optional[str]:
    """Token of the project's linked account, or the fallback token."""
    if project.github_account is not None:
        return project.github_account.get_token()
    return fallback


def list_account_repos(session, account_id: int, client: GitHubClient = None) -> List[Dict]:
    """Repositories available to a stored GitHub account."""
    account = session.query(GitHubAccount).filter(GitHubAccount.id == account_id).first()
    if not account:
        logger.error("GitHub account %s not found", account_id)
        return []
    try:
        token = account.get_token()
    except InvalidToken:
        logger.error("Token for GitHub account %s cannot be decrypted", account.username)
        return []
    client = client or GitHubClient()
    return client.list_repos(token)


def sync_project(session, project_id: int, config: AppConfig = None,
                 client: GitHubClient = None) -> Optional[Project]:
    """
    Refresh one project's last GitHub push.

    Returns the project (unchanged if the sync failed), or None
    if the project does not exist or has no repository configured.
    """
    project = get_project_by_id(session, project_id)
    if not project or not project.has_repo:
        return None

    client = client or GitHubClient()
    fallback = config.github_token if config else None

    try:
        pushed_at = client.get_pushed_at(project.repo_owner, project.repo_name, _token_for(project, fallback))
    except SYNC_ERRORS as e:
        logger.error("GitHub sync error for %s: %s", project.name, e)
        return project

    if pushed_at:
        project.last_github_push = pushed_at
        project.updated_at = datetime.now()
        session.commit()

    return project


def sync_all_projects(session, config: AppConfig, client: GitHubClient = None,
                      sleep=time.sleep) -> Dict:
    """
    Refresh the last push of every project with a repository.

    Each project uses its linked account's token, falling back to the
    configured global token. Calls are spaced by config.github_sync_delay.

    Returns:
        Dict with 'success', 'synced', 'failed' and per-project 'results'
    """
    client = client or GitHubClient()
    projects = [p for p in session.query(Project).all() if p.has_repo]
    results = []

    for project in projects:
        try:
            pushed_at = client.get_pushed_at(
                project.repo_owner, project.repo_name, _token_for(project, config.github_token)
            )
            if pushed_at:
                project.last_github_push = pushed_at
                project.updated_at = datetime.now()
                session.commit()
                results.append({
                    'id': project.id,
                    'name': project.name,
                    'status': 'synced',
                    'pushed_at': pushed_at.isoformat(),
                })
            else:
                results.append({'id': project.id, 'name': project.name, 'status': 'failed'})
        except SYNC_ERRORS as e:
            session.rollback()
            logger.error("GitHub sync error for %s: %s", project.name, e)
            results.append({'id': project.id, 'name': project.name, 'status': 'error',
                            'error': str(e) or type(e).__name__})

        if config.github_sync_delay > 0:
            sleep(config.github_sync_delay)

    synced = sum(1 for r in results if r['status'] == 'synced')
    logger.info("GitHub sync finished: %d synced, %d failed", synced, len(results) - synced)

    return {
        'success': True,
        'synced': synced,
        'failed': len(results) - synced,
        'results': results,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point for scheduled syncs."""
    parser = argparse.ArgumentParser(description='Sync last GitHub push times for all projects.')
    parser.add_argument('--config', help='Path to config.yaml')
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config)
    configure_database(config)
    init_db(config)

    session = get_session()
    try:
        result = sync_all_projects(session, config)
    finally:
        session.close()

    for item in result['results']:
        print(f"  {item['name']}: {item['status']}")
    print(f"Synced {result['synced']}, failed {result['failed']}")

    return 0 if result['failed'] == 0 else 1


if __name__ == '__main__':
    sys.exit(main())
