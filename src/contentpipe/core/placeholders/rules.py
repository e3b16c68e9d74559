"""Placeholder rule tables: policy -> basename -> category, loaded once per process

Basenames are folded to upper case for every policy, both when the tables are
built and when a placeholder is looked up, so `company_name` and
`COMPANY_NAME` always share a rule. Anything not listed is rejected.
"""

from dataclasses import dataclass, field
from functools import cache
from pathlib import Path
from typing import Any

import yaml

from contentpipe.core.models import PlaceholderCategory, PlaceholderPolicy


DEFAULT_RULES: dict[str, dict[str, Any]] = {
    PlaceholderPolicy.email.value: {
        "ignore": ["RECIPIENT_EMAIL_ADDRESS", "FROM_EMAIL_ADDRESS", "SCENARIO_START_DATETIME", "CURRENT_YEAR"],
        "strip": ["COMPANY_NAME"],
        "replace": {"FROM_FRIENDLY_NAME": "from_name"},
        "reject": ["FIRST_NAME", "LAST_NAME", "NAME", "PROGRAM_CONTACT_NAME"],
    },
    PlaceholderPolicy.education.value: {
        "ignore": [
            "CURRENT_YEAR", "RECIPIENT_EMAIL_ADDRESS", "RECIPIENT_EMAIL_DOMAIN",
            "FROM_EMAIL_ADDRESS", "FROM_FRIENDLY_NAME",
        ],
        "strip": ["COMPANY_NAME"],
        "replace": {},
        "reject": ["NAME", "RECIPIENT_NAME"],
    },
    PlaceholderPolicy.landing.value: {
        "ignore": [
            "CURRENT_YEAR", "RECIPIENT_EMAIL_ADDRESS", "RECIPIENT_EMAIL_DOMAIN", "FROM_EMAIL_ADDRESS",
            "FROM_FULL_EMAIL_ADDRESS", "FROM_FRIENDLY_NAME", "SCENARIO_START_DATETIME",
        ],
        "strip": ["COMPANY_NAME"],
        "replace": {},
        "reject": ["NAME", "RECIPIENT_NAME"],
    },
}


def fold(basename: str) -> str:
    return basename.strip().upper()


@dataclass(frozen=True)
class RuleTable:
    """Rules for one policy; replace_keys maps a replace basename to its context key."""
    policy:       PlaceholderPolicy
    categories:   dict[str, PlaceholderCategory] = field(default_factory=dict)
    replace_keys: dict[str, str] = field(default_factory=dict)

    def classify(self, basename: str) -> PlaceholderCategory:
        """Category for basename; unknown names fail safe to reject."""
        return self.categories.get(fold(basename), PlaceholderCategory.reject)


def build_table(policy: PlaceholderPolicy, raw: dict[str, Any]) -> RuleTable:
    """Build a RuleTable from its dict form; a basename listed twice raises ValueError."""
    categories: dict[str, PlaceholderCategory] = {}
    replace_keys: dict[str, str] = {}

    def _add(name: str, category: PlaceholderCategory) -> None:
        key = fold(name)
        if key in categories and categories[key] != category:
            raise ValueError(
                f"Placeholder {key} listed as both {categories[key].value} and {category.value} "
                f"in {policy.value} rules"
            )
        categories[key] = category

    for category in (PlaceholderCategory.ignore, PlaceholderCategory.strip, PlaceholderCategory.reject):
        for name in raw.get(category.value) or []:
            _add(name, category)

    replace = raw.get(PlaceholderCategory.replace.value) or {}
    if isinstance(replace, list):
        replace = {name: name.lower() for name in replace}
    for name, context_key in replace.items():
        _add(name, PlaceholderCategory.replace)
        replace_keys[fold(name)] = context_key

    return RuleTable(policy=policy, categories=categories, replace_keys=replace_keys)


@cache
def load_rules(rules_file: str | None = None) -> dict[PlaceholderPolicy, RuleTable]:
    """Return all rule tables, with per-policy overrides from a YAML file when given."""
    raw = {name: dict(rules) for name, rules in DEFAULT_RULES.items()}
    if rules_file:
        path = Path(rules_file)
        try:
            overrides = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ValueError(f"Invalid placeholder rules file {path}: {e}") from e
        for name, rules in overrides.items():
            raw[PlaceholderPolicy(name).value] = rules
    return {PlaceholderPolicy(name): build_table(PlaceholderPolicy(name), rules) for name, rules in raw.items()}


def get_table(policy: PlaceholderPolicy | str, rules_file: str | None = None) -> RuleTable:
    return load_rules(rules_file)[PlaceholderPolicy(policy)]
