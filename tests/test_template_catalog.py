"""
Tests for the document template catalog
"""
import pytest

from services.template_catalog import (
    TEMPLATES, ALL_CATEGORIES, search_templates, list_categories, get_template, require_generator
)
from utils.exceptions import NotFoundError, TemplateNotAvailableError, ErrorCode


class TestTemplateCatalog:
    """Test cases for catalog search"""

    def test_seven_templates(self):
        assert len(TEMPLATES) == 7
        assert [t.id for t in TEMPLATES if t.available] == ["yc-safe"]

    def test_empty_search_returns_everything_in_order(self):
        assert search_templates() == TEMPLATES

    def test_search_is_case_insensitive_over_title_and_description(self):
        assert [t.id for t in search_templates("disclosure")] == ["nda"]
        assert [t.id for t in search_templates("VESTING")] == ["founder-agreement"]

    def test_category_filter(self):
        result = search_templates(category="Employment")
        assert [t.id for t in result] == ["consultant-agreement", "employment-agreement"]

    def test_term_and_category_combined(self):
        assert [t.id for t in search_templates("employees", "Employment")] == ["employment-agreement"]
        assert search_templates("employees", "Fundraising") == []

    def test_unknown_category(self):
        assert search_templates(category="Tax") == []

    def test_categories(self):
        assert list_categories() == [
            ALL_CATEGORIES,
            "Fundraising",
            "Founding",
            "Legal Protection",
            "Intellectual Property",
            "Employment",
            "Corporate Governance",
        ]

    def test_get_template(self):
        assert get_template("yc-safe").title == "YC SAFE - Valuation Cap"
        assert get_template("missing") is None


class TestRequireGenerator:

    def test_available_template(self):
        assert require_generator("yc-safe").id == "yc-safe"

    @pytest.mark.parametrize("template_id", ["founder-agreement", "nda", "board-resolution"])
    def test_template_without_generator(self, template_id):
        with pytest.raises(TemplateNotAvailableError) as exc_info:
            require_generator(template_id)

        assert exc_info.value.error_code == ErrorCode.TEMPLATE_NOT_AVAILABLE
        assert "currently being developed" in exc_info.value.message

    def test_unknown_template(self):
        with pytest.raises(NotFoundError):
            require_generator("missing")
