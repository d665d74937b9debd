"""
Tests for form validation
"""
from datetime import datetime

import pytest

from nichestack.validation import (
    is_valid_url, validate_backlink, validate_expense, validate_project, validate_resource, validate_tool
)


@pytest.mark.parametrize('value, expected', [
    ('https://example.com', True),
    ('http://example.com/path?q=1', True),
    ('  https://example.com  ', True),
    ('example.com', False),
    ('ftp://example.com', False),
    ('https://', False),
    ('', False),
    (None, False),
])
def test_is_valid_url(value, expected):
    assert is_valid_url(value) is expected


class TestProject:

    def test_valid(self, lookup):
        assert validate_project({'name': 'Garden', 'site_url': 'https://garden.example',
                                 'status': 'active', 'adsense_status': 'none'}, lookup) == []

    def test_blank_name(self, lookup):
        assert validate_project({'name': '   '}, lookup) == ['Name is required']

    def test_bad_url_and_choice(self, lookup):
        errors = validate_project({'name': 'x', 'site_url': 'garden', 'adsense_status': 'paused'}, lookup)
        assert errors == ['Please enter a valid URL', 'Invalid value: paused']

    def test_negative_domain_cost(self, lookup):
        assert validate_project({'name': 'x', 'domain_cost': -1}, lookup) == ['Amount must be zero or more']


class TestBacklink:

    def test_valid(self, lookup):
        values = {'source_url': 'https://a.example', 'target_url': 'https://b.example',
                  'da_score': 40, 'cost': 0, 'status': 'live'}
        assert validate_backlink(values, lookup) == []

    def test_url_error_reported_once(self, lookup):
        assert validate_backlink({}, lookup) == ['Please enter a valid URL']

    def test_score_range(self, lookup):
        values = {'source_url': 'https://a.example', 'target_url': 'https://b.example', 'da_score': 101}
        assert validate_backlink(values, lookup) == ['Score must be between 0 and 100']


class TestExpense:

    def test_valid(self, lookup):
        values = {'name': 'Hosting', 'amount': 5, 'category': 'hosting', 'paid_at': datetime(2026, 1, 1)}
        assert validate_expense(values, lookup) == []

    def test_everything_missing(self, lookup):
        assert validate_expense({'amount': 0}, lookup) == [
            'Name is required',
            'Amount must be greater than zero',
            'Category is required',
            'Date is required',
        ]


class TestResource:

    def test_valid(self, lookup):
        values = {'name': 'Dir', 'url': 'https://dir.example', 'type': 'directory',
                  'da_score': 10, 'dr_score': 20, 'price': 0, 'status': 'active'}
        assert validate_resource(values, lookup) == []

    def test_invalid_fields(self, lookup):
        values = {'name': 'Dir', 'url': 'https://dir.example', 'type': 'directory',
                  'dr_score': -3, 'price': -1, 'status': 'archived'}
        assert validate_resource(values, lookup) == [
            'Score must be between 0 and 100',
            'Amount must be zero or more',
            'Invalid value: archived',
        ]


class TestTool:

    def test_valid(self, lookup):
        values = {'name': 'Trends', 'url': 'https://trends.example', 'category': 'trend_insight', 'cost': 'free'}
        assert validate_tool(values, lookup) == []

    def test_unknown_cost(self, lookup):
        values = {'name': 'Trends', 'url': 'https://trends.example', 'category': 'trend_insight', 'cost': 'cheap'}
        assert validate_tool(values, lookup) == ['Invalid value: cheap']
