"""Tests for the tag rule helpers."""

import pytest

from src.strategist.schemas.tag import qualification_rules_adapter
from src.strategist.services import tag_rules

pytestmark = pytest.mark.unit


def rules(payload: dict):
    return qualification_rules_adapter.validate_python(payload)


class TestValidateTagName:
    """Tests for validate_tag_name."""

    def test_too_short(self):
        assert tag_rules.validate_tag_name(" A ") == ["Tag name must be at least 2 characters"]

    def test_missing(self):
        assert tag_rules.validate_tag_name(None) == ["Tag name must be at least 2 characters"]

    def test_too_long(self):
        assert tag_rules.validate_tag_name("A" * 101) == ["Tag name must be less than 100 characters"]

    def test_duplicate_ignores_current_tag(self):
        existing = [{"id": "t1", "name": "HighValue"}]

        assert tag_rules.validate_tag_name("highVALUE", existing) == [
            "A tag with this name already exists"
        ]
        assert tag_rules.validate_tag_name("HighValue", existing, current_tag_id="t1") == []


class TestValidateQualificationRules:
    """Tests for validate_qualification_rules."""

    objects = [
        {"name": "member", "fields": [{"name": "status"}, {"name": "age"}]},
        {"name": "loan", "fields": []},
    ]

    def test_missing_rules(self):
        assert tag_rules.validate_qualification_rules(None, self.objects) == [
            "At least one qualification rule condition is required"
        ]

    def test_reports_each_bad_condition_by_position(self):
        parsed = rules(
            {
                "ruleType": "property",
                "logic": "OR",
                "conditions": [
                    {"object": "member", "field": "age", "operator": "greater_than", "value": 18},
                    {"object": "branch", "field": "city", "operator": "is_known"},
                    {"object": "loan", "field": "balance", "operator": "is_known"},
                ],
            }
        )

        assert tag_rules.validate_qualification_rules(parsed, self.objects) == [
            'Condition 2: Object "branch" does not exist in data model',
            'Condition 3: Field "balance" does not exist in object "loan"',
        ]

    def test_non_property_rules_are_not_checked_against_objects(self):
        parsed = rules(
            {
                "ruleType": "score",
                "conditions": [
                    {
                        "scoreField": "engagement",
                        "operator": "between",
                        "value": [10, 20],
                        "hysteresis": {"addThreshold": 12, "removeThreshold": 8},
                    }
                ],
            }
        )

        assert tag_rules.validate_qualification_rules(parsed, []) == []


class TestValidateTagDependencies:
    """Tests for validate_tag_dependencies."""

    def test_no_dependencies(self):
        assert tag_rules.validate_tag_dependencies("a", None) == []
        assert tag_rules.validate_tag_dependencies("a", []) == []

    def test_self_dependency_is_a_cycle(self):
        graph = [{"id": "a", "name": "Alpha", "dependencies": ["a"]}]

        assert tag_rules.validate_tag_dependencies("a", ["a"], graph) == [
            'Circular dependency detected with tag "Alpha"'
        ]

    def test_long_cycle(self):
        graph = [
            {"id": "a", "name": "Alpha", "dependencies": ["b"]},
            {"id": "b", "name": "Beta", "dependencies": ["c"]},
            {"id": "c", "name": "Gamma", "dependencies": ["a"]},
        ]

        assert tag_rules.validate_tag_dependencies("a", ["b"], graph) == [
            'Circular dependency detected with tag "Beta"'
        ]

    def test_dangling_edge_deeper_in_graph_is_ignored(self):
        graph = [{"id": "b", "name": "Beta", "dependencies": ["gone"]}]

        assert tag_rules.validate_tag_dependencies("a", ["b"], graph) == []

    def test_each_missing_dependency_reported(self):
        assert tag_rules.validate_tag_dependencies("a", ["x", "y"], []) == [
            'Dependency tag "x" does not exist',
            'Dependency tag "y" does not exist',
        ]


class TestAnalyzeRuleComplexity:
    """Tests for analyze_rule_complexity thresholds."""

    @staticmethod
    def property_rules(count: int):
        condition = {"object": "member", "field": "status", "operator": "is_known"}
        return rules({"ruleType": "property", "conditions": [condition] * count})

    @pytest.mark.parametrize(
        ("count", "level"),
        [(1, "simple"), (5, "simple"), (6, "moderate"), (10, "moderate"), (11, "complex")],
    )
    def test_levels(self, count: int, level: str):
        analysis = tag_rules.analyze_rule_complexity(self.property_rules(count))

        assert analysis.score == count
        assert analysis.level == level

    def test_complex_rules_suggest_splitting(self):
        analysis = tag_rules.analyze_rule_complexity(self.property_rules(11))

        assert analysis.warnings == ["Consider breaking this into multiple tags"]
