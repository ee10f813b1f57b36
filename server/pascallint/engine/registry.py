"""
Registry for lint rules.

The registry is an ordered catalogue: dispatch invokes rules sharing a node
type in the order they were registered here. Built-in rules are registered
in catalogue order from ``pascallint.rules``; additional rule packages can be
discovered the same way, from modules exposing a ``RULES`` list.
"""

import importlib
import logging
import pkgutil
from typing import Dict, Iterator, List, Optional

from .types import Rule, Severity

logger = logging.getLogger(__name__)


class RuleRegistry:
    """Ordered catalogue of rule descriptors."""

    def __init__(self):
        self._rules: List[Rule] = []
        self._rule_index: Dict[str, Rule] = {}  # id -> rule

    def register_rule(self, rule: Rule) -> None:
        """Register a rule. Re-registering an id is a no-op."""
        if rule.id in self._rule_index:
            logger.debug("Rule '%s' already registered, skipping", rule.id)
            return

        self._rules.append(rule)
        self._rule_index[rule.id] = rule

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get rule by id."""
        return self._rule_index.get(rule_id)

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules in registration order."""
        return self._rules.copy()

    def get_rule_ids(self) -> List[str]:
        return [rule.id for rule in self._rules]

    def default_severities(self) -> Dict[str, Severity]:
        """Default severity table derived from the registered rules."""
        return {rule.id: rule.default_severity for rule in self._rules}

    def discover_rules(self, entry_packages: List[str]) -> int:
        """
        Import every module under the given packages and register the rules
        listed in their ``RULES`` attribute.

        Returns:
            Number of rules discovered and registered
        """
        initial_count = len(self._rules)
        for package_name in entry_packages:
            package = importlib.import_module(package_name)
            self._extract_rules_from_module(package)
            if not hasattr(package, "__path__"):
                continue
            for _, modname, _ in pkgutil.walk_packages(package.__path__, package.__name__ + "."):
                self._extract_rules_from_module(importlib.import_module(modname))
        return len(self._rules) - initial_count

    def _extract_rules_from_module(self, module) -> None:
        rules = getattr(module, "RULES", None)
        if not isinstance(rules, list):
            return
        for rule in rules:
            # Rule classes are instantiated, rule objects used as-is
            self.register_rule(rule() if isinstance(rule, type) else rule)

    def clear(self) -> None:
        """Clear all registered rules (mainly for testing)."""
        self._rules.clear()
        self._rule_index.clear()

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.copy())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rule_index


def load_builtin_rules(registry: Optional[RuleRegistry] = None) -> RuleRegistry:
    """Register the built-in rules, in catalogue order, into ``registry``."""
    from ..rules import BUILTIN_RULES

    registry = registry if registry is not None else RuleRegistry()
    for rule in BUILTIN_RULES:
        registry.register_rule(rule)
    return registry


# Global registry instance, loaded on first use
_global_registry: Optional[RuleRegistry] = None


def get_registry() -> RuleRegistry:
    """Get the process-wide registry holding the built-in rules."""
    global _global_registry
    if _global_registry is None:
        _global_registry = load_builtin_rules()
    return _global_registry


def get_rule(rule_id: str) -> Optional[Rule]:
    """Get rule by id from the global registry."""
    return get_registry().get_rule(rule_id)


def get_all_rules() -> List[Rule]:
    """Get all registered rules from the global registry."""
    return get_registry().get_all_rules()
