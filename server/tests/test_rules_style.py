"""
Tests for the style rules and the built-in rule catalogue.
"""

import pytest

from fakes import N, lint_source
from pascallint.engine.config import DEFAULT_RULES
from pascallint.engine.fixes import apply_fixes
from pascallint.engine.registry import load_builtin_rules
from pascallint.rules import BUILTIN_RULES
from pascallint.rules.camel_case import CamelCaseRule, follows_convention
from pascallint.rules.one_var_per_line import OneVarPerLineRule
from pascallint.rules.pascal_case import PascalCaseRule
from pascallint.rules.upper_case_keywords import UpperCaseKeywordsRule


class TestPascalCaseRule:

    def setup_method(self):
        self.rule = PascalCaseRule()

    def test_class_name(self):
        source = "my_class = class end;"
        spec = N("root", N("declType", "my_class = class end",
                           N("identifier", "my_class", field="name"),
                           N("declClass", "class end")))

        issues = lint_source(source, spec, self.rule)

        assert [i.message for i in issues] == ["Class name 'my_class' should follow PascalCase naming convention."]

    def test_non_class_type(self):
        source = "byteArr = array of Byte;"
        spec = N("root", N("declType", "byteArr = array of Byte",
                           N("identifier", "byteArr", field="name"),
                           N("typeref", "array of Byte")))

        issues = lint_source(source, spec, self.rule)

        assert issues[0].message.startswith("Type name 'byteArr'")

    def test_procedure_name(self):
        source = "procedure do_it;"
        spec = N("root", N("declProc", source,
                           N("kProcedure", "procedure"),
                           N("identifier", "do_it", field="name")))

        issues = lint_source(source, spec, self.rule)

        assert issues[0].message == "Procedure name 'do_it' should follow PascalCase naming convention."
        assert issues[0].range.start.offset == len("procedure ")

    def test_qualified_method_name(self):
        source = "function TFoo.get_value: Integer;"
        spec = N("root", N("declProc", source,
                           N("kFunction", "function"),
                           N("identifier", "TFoo.get_value", field="name")))

        issues = lint_source(source, spec, self.rule)

        assert issues[0].message == "Function name 'get_value' should follow PascalCase naming convention."

    @pytest.mark.parametrize("name", ["TMyClass", "DoSomething", "x", "IStream2"])
    def test_valid_names(self, name):
        source = f"procedure {name};"
        spec = N("root", N("declProc", source,
                           N("kProcedure", "procedure"),
                           N("identifier", name, field="name")))

        assert lint_source(source, spec, self.rule) == []


class TestOneVarPerLineRule:

    def setup_method(self):
        self.rule = OneVarPerLineRule()

    def test_multiple_names(self):
        source = "a, b, c: Integer;"
        issues = lint_source(source, N("root", N("declVar", source)), self.rule, severity="info")

        assert len(issues) == 1
        assert issues[0].message == "Multiple variables (3) declared on one line. Consider one variable per line."

    def test_single_name(self):
        source = "a: Integer;"
        assert lint_source(source, N("root", N("declVar", source)), self.rule) == []


class TestCamelCaseRule:

    def setup_method(self):
        self.rule = CamelCaseRule()

    def test_default_severity_is_off(self):
        assert self.rule.default_severity == "off"

    def test_local_variable(self):
        source = "procedure Run; var MyValue: Integer;"
        spec = N("root", N("declProc", source,
                           N("kProcedure", "procedure"),
                           N("identifier", "Run", field="name"),
                           N("declVar", "MyValue: Integer;",
                             N("identifier", "MyValue"), N(":", ":"), N("typeref", "Integer"))))

        issues = lint_source(source, spec, self.rule)

        assert [i.message for i in issues] == ["Variable 'MyValue' should use camelCase naming convention."]

    def test_unit_level_variable_is_not_checked(self):
        source = "var MyValue: Integer;"
        spec = N("root", N("declVar", "MyValue: Integer;",
                           N("identifier", "MyValue"), N(":", ":"), N("typeref", "Integer")))

        assert lint_source(source, spec, self.rule) == []

    def test_parameters(self):
        source = "AOwner, Some_Name: TComponent"
        spec = N("root", N("declArg", source,
                           N("identifier", "AOwner"), N(",", ","), N("identifier", "Some_Name"),
                           N(":", ":"), N("identifier", "TComponent")))

        issues = lint_source(source, spec, self.rule)

        assert [i.message for i in issues] == ["Parameter 'Some_Name' should use camelCase naming convention."]

    @pytest.mark.parametrize("name,expected", [
        ("myValue", True),
        ("my_value", True),
        ("FValue", True),
        ("MAX_SIZE", False),
        ("MAXSIZE", True),
        ("i", True),
        ("MyValue", False),
    ])
    def test_follows_convention(self, name, expected):
        assert follows_convention(name) is expected


class TestUpperCaseKeywordsRule:

    SOURCE = "BEGIN x := 1; End"
    SPEC = N("root", N("block", SOURCE, N("kBegin", "BEGIN"), N("statement", "x := 1;"), N("kEnd", "End")))

    def setup_method(self):
        self.rule = UpperCaseKeywordsRule()

    def test_lowercase_by_default(self):
        issues = lint_source(self.SOURCE, self.SPEC, self.rule)

        assert [i.message for i in issues] == [
            "Keyword 'BEGIN' should be lowercase 'begin'.",
            "Keyword 'End' should be lowercase 'end'.",
        ]
        assert apply_fixes(self.SOURCE, issues).fixed_text == "begin x := 1; end"

    def test_uppercase_option(self):
        issues = lint_source(self.SOURCE, self.SPEC, self.rule, options={"style": "upper"})

        assert [i.message for i in issues] == ["Keyword 'End' should be uppercase 'END'."]


class TestBuiltinRules:

    def test_catalogue_matches_default_severities(self):
        assert [rule.id for rule in BUILTIN_RULES] == list(DEFAULT_RULES)
        for rule in BUILTIN_RULES:
            assert rule.default_severity == DEFAULT_RULES[rule.id]

    def test_ids_are_unique(self):
        ids = [rule.id for rule in BUILTIN_RULES]
        assert len(ids) == len(set(ids)) == 14

    def test_every_rule_has_metadata(self):
        for rule in BUILTIN_RULES:
            assert rule.meta.description
            assert rule.meta.category in {"error", "best-practice", "style"}

    def test_builtin_rules_load_in_catalogue_order(self):
        registry = load_builtin_rules()
        assert registry.get_rule_ids() == [rule.id for rule in BUILTIN_RULES]
