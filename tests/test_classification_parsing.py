"""Tests for strict validation of classifier responses."""
import pytest

from upkeep.services.classification_service import parse_classification
from upkeep.services.classifier_service import ClassificationError, build_prompt


class TestParseClassification:

    def test_valid_response(self):
        result = parse_classification('{"category": "plumbing", "urgency": 3}')
        assert result.category == "plumbing"
        assert result.urgency == 3

    def test_category_is_lowercased(self):
        result = parse_classification('{"category": "HVAC", "urgency": 5}')
        assert result.category == "hvac"

    @pytest.mark.parametrize("urgency", [0, 6, -1, 42])
    def test_urgency_out_of_range_rejected(self, urgency):
        with pytest.raises(ClassificationError, match="urgency"):
            parse_classification(f'{{"category": "general", "urgency": {urgency}}}')

    @pytest.mark.parametrize("urgency", ['"3"', "3.5", "true", "null"])
    def test_non_integer_urgency_rejected(self, urgency):
        with pytest.raises(ClassificationError):
            parse_classification(f'{{"category": "general", "urgency": {urgency}}}')

    def test_missing_field_rejected(self):
        with pytest.raises(ClassificationError, match="urgency"):
            parse_classification('{"category": "electrical"}')

    def test_extra_field_rejected(self):
        with pytest.raises(ClassificationError):
            parse_classification('{"category": "electrical", "urgency": 2, "reason": "x"}')

    def test_unknown_category_rejected(self):
        with pytest.raises(ClassificationError, match="category"):
            parse_classification('{"category": "landscaping", "urgency": 2}')

    @pytest.mark.parametrize("content", ["", "not json", "[1, 2]", '"plumbing"'])
    def test_malformed_payload_rejected(self, content):
        with pytest.raises(ClassificationError):
            parse_classification(content)


class TestBuildPrompt:

    def test_description_only(self):
        prompt = build_prompt("Kitchen faucet won't stop dripping")
        assert '"Kitchen faucet won\'t stop dripping"' in prompt
        assert "5 = Emergency" in prompt

    def test_title_is_prefixed(self):
        prompt = build_prompt("Water on the floor", issue_title="  Leak  ")
        assert '"Leak: Water on the floor"' in prompt

    def test_blank_title_ignored(self):
        prompt = build_prompt("No hot water", issue_title="   ")
        assert '"No hot water"' in prompt
