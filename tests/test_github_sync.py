"""
Tests for GitHub last-push sync
"""
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

from nichestack import database, github_sync, models
from nichestack.config import AppConfig
from nichestack.github_sync import GitHubClient, parse_github_timestamp, sync_all_projects, sync_project


PUSHED = datetime(2026, 10, 1, 8, 0)


class FakeClient:
    """Records calls and replays canned results per repository."""

    def __init__(self, results):
        self.results = results
        self.calls = []

    def get_pushed_at(self, owner, repo, token=None):
        self.calls.append((owner, repo, token))
        result = self.results.get(repo)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def config():
    return AppConfig(github_token='ghp_global', github_sync_delay=0.5)


@pytest.fixture
def repo_projects(session):
    account = database.add_github_account(session, 'octo', 'ghp_account')
    linked = database.add_project(session, name='Linked', repo_owner='octo', repo_name='linked',
                                  github_account_id=account.id)
    public = database.add_project(session, name='Public', repo_owner='someone', repo_name='public')
    database.add_project(session, name='No Repo')
    return linked, public


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.ok = status_code < 400
    response.status_code = status_code
    response.reason = 'Not Found' if status_code == 404 else 'OK'
    response.json.return_value = payload or {}
    return response


class TestParseTimestamp:

    def test_zulu_and_offset_forms_agree(self):
        assert parse_github_timestamp('2026-05-01T12:00:00Z') == parse_github_timestamp('2026-05-01T12:00:00+00:00')

    def test_result_is_naive(self):
        assert parse_github_timestamp('2026-05-01T12:00:00Z').tzinfo is None


class TestGitHubClient:

    @patch('nichestack.github_sync.requests.get')
    def test_get_pushed_at_sends_headers(self, mock_get):
        mock_get.return_value = _response(payload={'pushed_at': '2026-10-01T08:00:00Z'})

        pushed = GitHubClient().get_pushed_at('octo', 'site', 'ghp_abc')

        assert pushed == parse_github_timestamp('2026-10-01T08:00:00Z')
        url = mock_get.call_args[0][0]
        headers = mock_get.call_args[1]['headers']
        assert url == 'https://api.github.com/repos/octo/site'
        assert headers['Authorization'] == 'Bearer ghp_abc'
        assert headers['Accept'] == 'application/vnd.github.v3+json'
        assert headers['User-Agent'] == 'NicheStack-Manager'

    @patch('nichestack.github_sync.requests.get')
    def test_anonymous_request_has_no_authorization(self, mock_get):
        mock_get.return_value = _response(payload={'pushed_at': '2026-10-01T08:00:00Z'})
        GitHubClient().get_pushed_at('octo', 'site')
        assert 'Authorization' not in mock_get.call_args[1]['headers']

    @patch('nichestack.github_sync.requests.get')
    def test_error_status_returns_none(self, mock_get):
        mock_get.return_value = _response(404)
        assert GitHubClient().get_pushed_at('octo', 'missing') is None

    @patch('nichestack.github_sync.requests.get')
    def test_network_error_propagates(self, mock_get):
        mock_get.side_effect = requests.ConnectionError('down')
        with pytest.raises(requests.RequestException):
            GitHubClient().get_pushed_at('octo', 'site')

    @patch('nichestack.github_sync.requests.get')
    def test_list_repos(self, mock_get):
        mock_get.return_value = _response(payload=[{'name': 'site'}])
        assert GitHubClient().list_repos('ghp_abc') == [{'name': 'site'}]
        assert mock_get.call_args[1]['params'] == {'per_page': 100, 'sort': 'updated'}

    @patch('nichestack.github_sync.requests.get')
    def test_list_repos_failure_is_empty(self, mock_get):
        mock_get.side_effect = requests.Timeout('slow')
        assert GitHubClient().list_repos('ghp_abc') == []


class TestSyncProject:

    def test_updates_last_push(self, session, repo_projects, config):
        linked, _ = repo_projects
        client = FakeClient({'linked': PUSHED})

        result = sync_project(session, linked.id, config, client)

        assert result.last_github_push == PUSHED
        assert client.calls == [('octo', 'linked', 'ghp_account')]

    def test_falls_back_to_global_token(self, session, repo_projects, config):
        _, public = repo_projects
        client = FakeClient({'public': PUSHED})
        sync_project(session, public.id, config, client)
        assert client.calls == [('someone', 'public', 'ghp_global')]

    def test_project_without_repo(self, session, config):
        project = database.add_project(session, name='Plain')
        assert sync_project(session, project.id, config, FakeClient({})) is None

    def test_network_error_leaves_project_unchanged(self, session, repo_projects, config):
        linked, _ = repo_projects
        client = FakeClient({'linked': requests.ConnectionError('down')})
        result = sync_project(session, linked.id, config, client)
        assert result is linked
        assert result.last_github_push is None


def _replace_encryption_key(tmp_path):
    """Point the cipher at a fresh key so stored tokens no longer decrypt."""
    models.configure_encryption(str(tmp_path / 'replaced_key'))


class TestSyncAll:

    def test_reports_each_project(self, session, repo_projects, config):
        linked, public = repo_projects
        client = FakeClient({'linked': PUSHED, 'public': None})
        sleeps = []

        result = sync_all_projects(session, config, client, sleep=sleeps.append)

        assert result['success']
        assert result['synced'] == 1
        assert result['failed'] == 1
        statuses = {item['name']: item['status'] for item in result['results']}
        assert statuses == {'Linked': 'synced', 'Public': 'failed'}
        assert sleeps == [0.5, 0.5]
        assert database.get_project_by_id(session, linked.id).last_github_push == PUSHED

    def test_network_errors_are_reported(self, session, repo_projects, config):
        client = FakeClient({'linked': requests.Timeout('slow'), 'public': PUSHED})

        result = sync_all_projects(session, config, client, sleep=lambda _: None)

        error = next(item for item in result['results'] if item['name'] == 'Linked')
        assert error['status'] == 'error'
        assert 'slow' in error['error']
        assert result['synced'] == 1

    def test_zero_delay_skips_sleep(self, session, repo_projects):
        sleeps = []
        sync_all_projects(session, AppConfig(github_sync_delay=0), FakeClient({}), sleep=sleeps.append)
        assert sleeps == []


class TestMain:

    def test_exit_code_reflects_failures(self, tmp_path, monkeypatch):
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(f"db_path: {tmp_path / 'cli.db'}\ngithub_sync_delay: 0\n")
        monkeypatch.setattr(github_sync, 'sync_all_projects',
                            lambda session, config: {'success': True, 'synced': 0, 'failed': 0, 'results': []})
        assert github_sync.main(['--config', str(config_file)]) == 0

        monkeypatch.setattr(github_sync, 'sync_all_projects',
                            lambda session, config: {'success': True, 'synced': 0, 'failed': 1,
                                                     'results': [{'name': 'Site', 'status': 'failed'}]})
        assert github_sync.main(['--config', str(config_file)]) == 1


class TestUnreadableData:

    def test_unreadable_token_is_reported_per_project(self, session, repo_projects, config, tmp_path):
        _replace_encryption_key(tmp_path)
        client = FakeClient({'public': PUSHED})

        result = sync_all_projects(session, config, client, sleep=lambda _: None)

        statuses = {item['name']: item['status'] for item in result['results']}
        assert statuses == {'Linked': 'error', 'Public': 'synced'}
        error = next(item for item in result['results'] if item['name'] == 'Linked')
        assert error['error'] == 'InvalidToken'
        assert client.calls == [('someone', 'public', 'ghp_global')]

    def test_malformed_timestamp_is_reported_per_project(self, session, repo_projects, config):
        client = FakeClient({'linked': ValueError('Invalid isoformat string'), 'public': PUSHED})

        result = sync_all_projects(session, config, client, sleep=lambda _: None)

        statuses = {item['name']: item['status'] for item in result['results']}
        assert statuses == {'Linked': 'error', 'Public': 'synced'}
        assert result['synced'] == 1
        assert result['failed'] == 1

    def test_sync_project_with_unreadable_token(self, session, repo_projects, config, tmp_path):
        linked, _ = repo_projects
        _replace_encryption_key(tmp_path)
        client = FakeClient({'linked': PUSHED})

        result = sync_project(session, linked.id, config, client)

        assert result is linked
        assert result.last_github_push is None
        assert client.calls == []

    def test_list_repos_with_unreadable_token(self, session, tmp_path):
        account = database.add_github_account(session, 'octo', 'ghp_account')
        _replace_encryption_key(tmp_path)
        assert github_sync.list_account_repos(session, account.id, client=MagicMock()) == []

    def test_main_survives_unreadable_token(self, tmp_path, monkeypatch):
        config_file = tmp_path / 'config.yaml'
        config_file.write_text(f"db_path: {tmp_path / 'cli.db'}\ngithub_sync_delay: 0\n")
        monkeypatch.setattr(github_sync, 'GitHubClient', lambda: FakeClient({'linked': PUSHED}))

        github_sync.configure_database(github_sync.load_config(str(config_file)))
        github_sync.init_db()
        session = github_sync.get_session()
        try:
            account = database.add_github_account(session, 'octo', 'ghp_account')
            database.add_project(session, name='Linked', repo_owner='octo', repo_name='linked',
                                 github_account_id=account.id)
        finally:
            session.close()

        _replace_encryption_key(tmp_path)
        assert github_sync.main(['--config', str(config_file)]) == 1
