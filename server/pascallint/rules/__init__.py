"""
PascalLint Rules Package

This package contains the built-in rules. ``BUILTIN_RULES`` is the catalogue
in registry order: rules that listen to the same node type run in this
order.

To add a new rule:
1. Create a Python file in this directory (e.g., my_rule.py)
2. Define a class with ``id``, ``meta``, ``default_severity`` and
   ``create(context)`` returning a listener
3. End the module with ``RULES = [MyRule()]``
4. Append the module to ``RULE_MODULES`` below and give the rule a default
   severity in ``pascallint.engine.config.DEFAULT_RULES``

Example rule structure:

```python
from ..engine.types import RuleMeta
from .common import node_report

class NoGotoRule:
    id = "no-goto"
    meta = RuleMeta(description="Disallow goto", category="best-practice")
    default_severity = "warn"

    def create(self, context):
        def check_goto(node):
            context.report(node_report(node, "Avoid goto."))
        return {"goto": check_goto}

RULES = [NoGotoRule()]
```

Rule packages outside this one are picked up with
``RuleRegistry.discover_rules(["my_package.rules"])``.
"""

from typing import List

from ..engine.types import Rule
from . import (
    no_with,
    no_semicolon_before_else,
    dangling_semicolon,
    no_empty_finally,
    unreachable_code,
    constructor_call_on_instance,
    no_exit_in_finally,
    empty_begin_end,
    use_free_and_nil,
    check_assigned,
    pascal_case,
    one_var_per_line,
    camel_case,
    upper_case_keywords,
)

RULE_MODULES = [
    # Potential errors
    no_with,
    no_semicolon_before_else,
    dangling_semicolon,
    no_empty_finally,
    unreachable_code,
    constructor_call_on_instance,
    no_exit_in_finally,

    # Best practices
    empty_begin_end,
    use_free_and_nil,
    check_assigned,

    # Style
    pascal_case,
    one_var_per_line,
    camel_case,
    upper_case_keywords,
]

BUILTIN_RULES: List[Rule] = [rule for module in RULE_MODULES for rule in module.RULES]
