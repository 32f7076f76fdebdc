"""
Scenario simulation controller for the Juri legal assistant REST API
"""
import logging
from typing import Dict, List
from fastapi import APIRouter, status

from models.catalog import SimulationRun, SimulationScenario

logger = logging.getLogger(__name__)

# Create router for simulation endpoints
router = APIRouter(prefix="/simulations", tags=["simulations"])

# Import dependencies
from api.dependencies import SimulationServiceDep


@router.get(
    "",
    response_model=List[SimulationScenario],
    summary="List simulation scenarios"
)
async def list_scenarios(simulation_service: SimulationServiceDep = None) -> List[SimulationScenario]:
    return simulation_service.list_scenarios()


@router.post(
    "/{scenario_id}/runs",
    response_model=SimulationRun,
    status_code=status.HTTP_201_CREATED,
    summary="Start a simulation"
)
async def start_simulation(scenario_id: str, simulation_service: SimulationServiceDep = None) -> SimulationRun:
    """
    Start a run of a scenario.

    The run reports ``running`` until the simulation duration has elapsed;
    poll it to get the outcomes and recommendations.

    Raises:
        NotFoundError: If the scenario does not exist (404)
    """
    return simulation_service.start(scenario_id)


@router.get(
    "/runs/{run_id}",
    response_model=SimulationRun,
    summary="Get a simulation run"
)
async def get_simulation_run(run_id: str, simulation_service: SimulationServiceDep = None) -> SimulationRun:
    return simulation_service.get_run(run_id)


@router.delete(
    "/runs/{run_id}",
    summary="Reset a simulation"
)
async def reset_simulation(run_id: str, simulation_service: SimulationServiceDep = None) -> Dict[str, str]:
    simulation_service.reset(run_id)
    return {"message": "Simulation reset", "id": run_id}
