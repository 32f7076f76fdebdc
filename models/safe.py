"""
SAFE (Simple Agreement for Future Equity) form data and wizard steps
"""
import math
from dataclasses import dataclass
from datetime import date as date_type
from typing import List, Tuple
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel

from utils.exceptions import ValidationError


@dataclass(frozen=True)
class WizardStep:
    """One step of the SAFE generation wizard"""
    id: str
    title: str
    description: str
    fields: Tuple[str, ...]


WIZARD_STEPS: Tuple[WizardStep, ...] = (
    WizardStep("company-basics", "Company Information", "Tell us about your company",
               ("company_name", "company_state")),
    WizardStep("investment-terms", "Investment Terms", "Set the key terms of your SAFE",
               ("purchase_amount", "valuation_cap", "discount_rate")),
    WizardStep("investor-details", "Investor Information", "Add details about your investor",
               ("investor_name", "investor_title", "investor_address", "investor_email")),
    WizardStep("company-contact", "Company Details", "Your company contact information",
               ("founder_name", "title", "company_address", "company_email")),
    WizardStep("agreement-date", "Finalize Agreement", "Set the date and review",
               ("date",)),
)

REQUIRED_FIELDS = ("company_name", "investor_name", "purchase_amount", "valuation_cap")
POSITIVE_AMOUNT_FIELDS = ("purchase_amount", "valuation_cap")


def parse_amount(value: str) -> float:
    """Parse a user-entered amount such as ``100000`` or ``$1,000,000``"""
    cleaned = value.strip().replace(",", "").lstrip("$")
    return float(cleaned)


def is_positive_amount(value: str) -> bool:
    try:
        amount = parse_amount(value)
    except ValueError:
        return False
    return math.isfinite(amount) and amount > 0


class SafeFormData(BaseModel):
    """
    Values entered for a post-money valuation cap SAFE.

    All values are kept as the strings the user typed; they are only checked
    when a step is completed or the document is generated. JSON uses the
    camelCase field names (``companyName``, ``purchaseAmount``, ...).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "companyName": "Acme Robotics Inc.",
                "companyState": "Delaware",
                "investorName": "Jane Investor",
                "purchaseAmount": "100000",
                "valuationCap": "10000000",
                "discountRate": "20",
                "date": "2024-01-15",
                "title": "Chief Executive Officer",
                "founderName": "John Founder"
            }
        }
    )

    company_name: str = ""
    company_state: str = "Delaware"
    investor_name: str = ""
    purchase_amount: str = ""
    valuation_cap: str = ""
    discount_rate: str = "20"
    date: str = Field(default_factory=lambda: date_type.today().isoformat())
    title: str = "Chief Executive Officer"
    founder_name: str = ""
    company_address: str = ""
    company_email: str = ""
    investor_title: str = ""
    investor_address: str = ""
    investor_email: str = ""

    def validate_step(self, index: int) -> List[str]:
        """
        Check the fields of one wizard step

        Args:
            index: Zero-based wizard step index

        Returns:
            Names of the fields that are missing or invalid (empty when the step is complete)

        Raises:
            ValueError: If the index does not name a wizard step
        """
        if index < 0 or index >= len(WIZARD_STEPS):
            raise ValueError(f"Wizard step {index} does not exist")

        invalid = []
        for field_name in WIZARD_STEPS[index].fields:
            value = getattr(self, field_name)
            if field_name in POSITIVE_AMOUNT_FIELDS:
                if not is_positive_amount(value):
                    invalid.append(field_name)
            elif field_name in REQUIRED_FIELDS and not value.strip():
                invalid.append(field_name)
        return invalid

    def validate_for_submission(self) -> None:
        """Raise ValidationError unless every wizard step is complete"""
        for index in range(len(WIZARD_STEPS)):
            invalid = self.validate_step(index)
            if invalid:
                raise ValidationError(
                    message=f"Invalid or missing value for {invalid[0]}",
                    field_name=invalid[0],
                    field_value=getattr(self, invalid[0]),
                    validation_rule="positive_number" if invalid[0] in POSITIVE_AMOUNT_FIELDS else "required"
                )
