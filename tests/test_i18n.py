"""
Tests for label catalogs
"""
import pytest

from nichestack.i18n import SUPPORTED_LOCALES, get_translator, load_catalog, resolve_key, translate


def _flatten(node, prefix=''):
    keys = set()
    for name, value in node.items():
        key = f'{prefix}{name}'
        if isinstance(value, dict):
            keys |= _flatten(value, key + '.')
        else:
            keys.add(key)
    return keys


def test_catalogs_share_the_same_keys():
    english = _flatten(load_catalog('en'))
    for locale in SUPPORTED_LOCALES:
        assert _flatten(load_catalog(locale)) == english, locale


def test_resolves_dotted_key():
    assert resolve_key({'time': {'never': 'never'}}, 'time.never') == 'never'


def test_unknown_key_returns_key():
    lookup = get_translator('en')
    assert lookup('time.noSuchLabel') == 'time.noSuchLabel'


def test_partial_key_returns_key():
    assert resolve_key({'time': {'never': 'never'}}, 'time') == 'time'


def test_placeholders_are_substituted():
    catalog = {'time': {'daysLeft': '{count} days left'}}
    assert translate(catalog, 'time.daysLeft', {'count': 12}) == '12 days left'


def test_unsupported_locale_falls_back_to_english(caplog):
    lookup = get_translator('fr')
    assert lookup('time.today') == 'today'
    assert 'Unsupported locale' in caplog.text


@pytest.mark.parametrize('locale', SUPPORTED_LOCALES)
def test_duration_template_takes_all_parts(locale):
    text = get_translator(locale)('time.durationYearsMonthsDays', {'years': 1, 'months': 2, 'days': 3})
    assert '1' in text and '2' in text and '3' in text
