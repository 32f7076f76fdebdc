"""
Document template and legal simulation models
"""
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict
import uuid


class DocumentTemplate(BaseModel):
    """Entry of the document template catalog"""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "yc-safe",
                "title": "YC SAFE - Valuation Cap",
                "description": "Y Combinator Simple Agreement for Future Equity with valuation cap",
                "category": "Fundraising",
                "popularity": 5,
                "estimatedTime": "10 minutes",
                "available": True
            }
        }
    )

    id: str = Field(..., description="Template identifier")
    title: str = Field(..., description="Display title")
    description: str = Field(..., description="Short description of the template")
    category: str = Field(..., description="Catalog category")
    popularity: int = Field(..., ge=1, le=5, description="Popularity rating from 1 to 5")
    estimated_time: str = Field(..., alias="estimatedTime", description="Expected time to complete")
    available: bool = Field(False, description="Whether a generator exists for this template")


class SimulationOutcomes(BaseModel):
    """Best, likely and worst outcome of a scenario"""
    best: str
    likely: str
    worst: str


class SimulationScenario(BaseModel):
    """A canned legal scenario the user can simulate"""
    id: str = Field(..., description="Scenario identifier")
    title: str = Field(..., description="Display title")
    description: str = Field(..., description="What the scenario explores")
    category: str = Field(..., description="Legal area of the scenario")
    complexity: str = Field(..., pattern="^(Low|Medium|High)$", description="Scenario complexity")
    duration: str = Field(..., description="Expected duration of the exercise")
    participants: List[str] = Field(default_factory=list, description="Parties involved")
    outcomes: SimulationOutcomes


class SimulationStatus(str, Enum):
    """Lifecycle of a simulation run"""
    RUNNING = "running"
    COMPLETED = "completed"


class SimulationRun(BaseModel):
    """State of one simulation run"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Run identifier")
    scenario_id: str = Field(..., description="Scenario being simulated")
    title: str = Field(..., description="Title of the scenario being simulated")
    status: SimulationStatus = Field(SimulationStatus.RUNNING, description="Current run status")
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="When the run started")
    completed_at: Optional[datetime] = Field(None, description="When the run completed")
    outcomes: Optional[SimulationOutcomes] = Field(None, description="Outcomes, once completed")
    recommendations: List[str] = Field(default_factory=list, description="Recommendations, once completed")
