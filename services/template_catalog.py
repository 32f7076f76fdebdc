"""
Catalog of legal document templates
"""
from typing import List, Optional

from models.catalog import DocumentTemplate
from utils.exceptions import TemplateNotAvailableError, create_not_found_error


ALL_CATEGORIES = "all"

TEMPLATES: List[DocumentTemplate] = [
    DocumentTemplate(
        id="yc-safe",
        title="YC SAFE - Valuation Cap",
        description="Y Combinator Simple Agreement for Future Equity with valuation cap",
        category="Fundraising",
        popularity=5,
        estimated_time="10 minutes",
        available=True
    ),
    DocumentTemplate(
        id="founder-agreement",
        title="Founder Agreement",
        description="Define equity splits, vesting schedules, and responsibilities",
        category="Founding",
        popularity=5,
        estimated_time="15 minutes"
    ),
    DocumentTemplate(
        id="nda",
        title="Non-Disclosure Agreement",
        description="Protect confidential information in business discussions",
        category="Legal Protection",
        popularity=4,
        estimated_time="10 minutes"
    ),
    DocumentTemplate(
        id="ip-assignment",
        title="IP Assignment Agreement",
        description="Transfer intellectual property rights to the company",
        category="Intellectual Property",
        popularity=4,
        estimated_time="12 minutes"
    ),
    DocumentTemplate(
        id="consultant-agreement",
        title="Consultant Agreement",
        description="Engage external consultants with clear terms and deliverables",
        category="Employment",
        popularity=3,
        estimated_time="20 minutes"
    ),
    DocumentTemplate(
        id="employment-agreement",
        title="Employment Agreement",
        description="Hire employees with comprehensive terms and conditions",
        category="Employment",
        popularity=4,
        estimated_time="25 minutes"
    ),
    DocumentTemplate(
        id="board-resolution",
        title="Board Resolution",
        description="Document important company decisions and authorizations",
        category="Corporate Governance",
        popularity=3,
        estimated_time="8 minutes"
    ),
]


def search_templates(term: str = "", category: str = ALL_CATEGORIES) -> List[DocumentTemplate]:
    """
    Filter the catalog the way the template browser does

    Args:
        term: Case-insensitive substring of the title or description
        category: Exact category, or ``all``

    Returns:
        Matching templates in catalog order
    """
    needle = (term or "").strip().lower()
    category = category or ALL_CATEGORIES

    return [
        template for template in TEMPLATES
        if (category == ALL_CATEGORIES or template.category == category)
        and (needle in template.title.lower() or needle in template.description.lower())
    ]


def list_categories() -> List[str]:
    """``all`` followed by each distinct category in catalog order"""
    categories = [ALL_CATEGORIES]
    for template in TEMPLATES:
        if template.category not in categories:
            categories.append(template.category)
    return categories


def get_template(template_id: str) -> Optional[DocumentTemplate]:
    return next((t for t in TEMPLATES if t.id == template_id), None)


def require_generator(template_id: str) -> DocumentTemplate:
    """
    Look up a template that can be generated

    Raises:
        NotFoundError: If the template does not exist
        TemplateNotAvailableError: If the template has no generator yet
    """
    template = get_template(template_id)
    if template is None:
        raise create_not_found_error("template", template_id)
    if not template.available:
        raise TemplateNotAvailableError(template.id, template.title)
    return template
