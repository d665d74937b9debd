"""
Form validation for the Streamlit pages.

Each validator takes the submitted form values and a label lookup and
returns a list of error messages; an empty list means the form is valid.
"""

from typing import Callable, Dict, List
from urllib.parse import urlparse

from .models import (
    AdsenseStatus, BacklinkStatus, ProjectStatus, ResourceStatus, ToolCost, enum_values
)


def is_valid_url(value: str) -> bool:
    """Absolute http(s) URL with a host."""
    if not value:
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def _require_name(values: Dict, lookup: Callable[..., str], errors: List[str]):
    if not (values.get('name') or '').strip():
        errors.append(lookup('validation.nameRequired'))


def _check_choice(value, allowed: List[str], lookup: Callable[..., str], errors: List[str]):
    if value is not None and value not in allowed:
        errors.append(lookup('validation.invalidChoice', {'value': value}))


def _check_score(value, lookup: Callable[..., str], errors: List[str]):
    if value is not None and not 0 <= value <= 100:
        errors.append(lookup('validation.scoreInvalid'))


def validate_project(values: Dict, lookup: Callable[..., str]) -> List[str]:
    errors = []
    _require_name(values, lookup, errors)

    site_url = values.get('site_url')
    if site_url and not is_valid_url(site_url):
        errors.append(lookup('validation.urlInvalid'))

    _check_choice(values.get('status'), enum_values(ProjectStatus), lookup, errors)
    _check_choice(values.get('adsense_status'), enum_values(AdsenseStatus), lookup, errors)

    domain_cost = values.get('domain_cost')
    if domain_cost is not None and domain_cost < 0:
        errors.append(lookup('validation.amountInvalid'))

    return errors


def validate_backlink(values: Dict, lookup: Callable[..., str]) -> List[str]:
    errors = []

    for field in ('target_url', 'source_url'):
        if not is_valid_url(values.get(field)):
            errors.append(lookup('validation.urlInvalid'))
            break

    _check_score(values.get('da_score'), lookup, errors)

    cost = values.get('cost')
    if cost is not None and cost < 0:
        errors.append(lookup('validation.amountInvalid'))

    _check_choice(values.get('status'), enum_values(BacklinkStatus), lookup, errors)
    return errors


def validate_expense(values: Dict, lookup: Callable[..., str]) -> List[str]:
    errors = []
    _require_name(values, lookup, errors)

    amount = values.get('amount')
    if amount is None or amount <= 0:
        errors.append(lookup('validation.amountPositive'))

    if not values.get('category'):
        errors.append(lookup('validation.categoryRequired'))

    if not values.get('paid_at'):
        errors.append(lookup('validation.dateRequired'))

    return errors


def validate_resource(values: Dict, lookup: Callable[..., str]) -> List[str]:
    errors = []
    _require_name(values, lookup, errors)

    if not is_valid_url(values.get('url')):
        errors.append(lookup('validation.urlInvalid'))

    if not values.get('type'):
        errors.append(lookup('validation.categoryRequired'))

    _check_score(values.get('da_score'), lookup, errors)
    _check_score(values.get('dr_score'), lookup, errors)

    price = values.get('price')
    if price is not None and price < 0:
        errors.append(lookup('validation.amountInvalid'))

    _check_choice(values.get('status'), enum_values(ResourceStatus), lookup, errors)
    return errors


def validate_tool(values: Dict, lookup: Callable[..., str]) -> List[str]:
    errors = []
    _require_name(values, lookup, errors)

    if not is_valid_url(values.get('url')):
        errors.append(lookup('validation.urlInvalid'))

    if not values.get('category'):
        errors.append(lookup('validation.categoryRequired'))

    _check_choice(values.get('cost'), enum_values(ToolCost), lookup, errors)
    return errors
