"""
Legal scenario simulation service
"""
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from config import settings
from models.catalog import SimulationOutcomes, SimulationRun, SimulationScenario, SimulationStatus
from utils.exceptions import create_not_found_error

logger = logging.getLogger(__name__)


SCENARIOS: List[SimulationScenario] = [
    SimulationScenario(
        id="founder-leaving",
        title="Founder Leaves Before Vesting",
        description="Simulate the impact of a co-founder leaving the company before their equity vests",
        category="Equity & Vesting",
        complexity="Medium",
        duration="10-15 minutes",
        participants=["Remaining Founders", "Legal Counsel", "Board of Directors"],
        outcomes=SimulationOutcomes(
            best="Smooth transition with fair equity buyback and continued company growth",
            worst="Legal disputes, equity complications, and operational disruption",
            likely="Some equity forfeiture, need for new team member, temporary disruption"
        )
    ),
    SimulationScenario(
        id="ip-dispute",
        title="Intellectual Property Dispute",
        description="Explore scenarios where a former employee claims ownership of company IP",
        category="Intellectual Property",
        complexity="High",
        duration="15-20 minutes",
        participants=["Company Legal", "Former Employee", "Current Team", "Investors"],
        outcomes=SimulationOutcomes(
            best="Clear documentation proves company ownership, dispute resolved quickly",
            worst="Costly litigation, injunction on product, significant legal fees",
            likely="Settlement negotiation, some legal costs, IP assignment clarification"
        )
    ),
    SimulationScenario(
        id="investor-dilution",
        title="Investor Anti-Dilution Rights",
        description="See how down rounds and anti-dilution provisions affect founder ownership",
        category="Fundraising",
        complexity="High",
        duration="12-18 minutes",
        participants=["Founders", "Existing Investors", "New Investors", "Legal Advisors"],
        outcomes=SimulationOutcomes(
            best="Fair valuation maintained, minimal dilution, investor support continues",
            worst="Severe founder dilution, loss of control, investor conflicts",
            likely="Some dilution protection triggered, need for new investor terms"
        )
    ),
    SimulationScenario(
        id="regulatory-compliance",
        title="Regulatory Compliance Issue",
        description="Navigate potential compliance violations and regulatory responses",
        category="Compliance",
        complexity="High",
        duration="20-25 minutes",
        participants=["Compliance Team", "Regulators", "Legal Counsel", "Board"],
        outcomes=SimulationOutcomes(
            best="Proactive compliance, minor adjustments, continued operations",
            worst="Fines, operational restrictions, reputation damage",
            likely="Compliance plan implementation, some regulatory scrutiny"
        )
    ),
]

RECOMMENDATIONS = [
    "Implement clear documentation and agreements before issues arise",
    "Regular legal reviews and compliance checks can prevent most issues",
    "Maintain relationships with qualified legal counsel for complex situations",
]


class SimulationService:
    """
    Runs canned scenario simulations.

    A run is ``running`` until the configured duration has elapsed on the
    service clock and ``completed`` afterwards; completion is evaluated when
    the run is read, so no timers are kept. Runs are forgotten ``ttl_seconds``
    after they complete, and the oldest runs are dropped once ``max_runs`` are held.
    """

    def __init__(
        self,
        duration_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        ttl_seconds: Optional[float] = None,
        max_runs: Optional[int] = None
    ):
        self.duration_seconds = settings.simulation_duration_seconds if duration_seconds is None else duration_seconds
        self.ttl_seconds = settings.simulation_run_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.max_runs = settings.max_simulation_runs if max_runs is None else max_runs
        self.clock = clock
        self._runs: Dict[str, SimulationRun] = {}
        self._started: Dict[str, float] = {}
        self._lock = threading.Lock()

    def list_scenarios(self) -> List[SimulationScenario]:
        return list(SCENARIOS)

    def get_scenario(self, scenario_id: str) -> SimulationScenario:
        scenario = next((s for s in SCENARIOS if s.id == scenario_id), None)
        if scenario is None:
            raise create_not_found_error("scenario", scenario_id)
        return scenario

    def start(self, scenario_id: str) -> SimulationRun:
        """Start a run of the given scenario"""
        scenario = self.get_scenario(scenario_id)
        run = SimulationRun(scenario_id=scenario.id, title=scenario.title)

        with self._lock:
            now = self.clock()
            self._evict(now, room=1)
            self._runs[run.id] = run
            self._started[run.id] = now

        logger.info(f"Started simulation {run.id} for scenario {scenario.id}")
        return run

    def get_run(self, run_id: str) -> SimulationRun:
        """Current state of a run, completing it once its duration has elapsed"""
        with self._lock:
            now = self.clock()
            self._evict(now)
            run = self._runs.get(run_id)
            if run is None:
                raise create_not_found_error("simulation run", run_id)

            if run.status == SimulationStatus.RUNNING and now - self._started[run_id] >= self.duration_seconds:
                scenario = self.get_scenario(run.scenario_id)
                run = run.model_copy(update={
                    "status": SimulationStatus.COMPLETED,
                    "completed_at": datetime.now(timezone.utc),
                    "outcomes": scenario.outcomes,
                    "recommendations": list(RECOMMENDATIONS)
                })
                self._runs[run_id] = run
                logger.info(f"Simulation {run_id} completed")

            return run

    def _evict(self, now: float, room: int = 0) -> None:
        """Drop expired runs, then the oldest ones until ``room`` new runs fit; caller holds the lock"""
        expiry = self.duration_seconds + self.ttl_seconds
        # runs are stored in start order
        stale = [run_id for run_id, started in self._started.items() if now - started >= expiry]
        for run_id in stale:
            del self._runs[run_id]
            del self._started[run_id]

        overflow = len(self._started) + room - self.max_runs
        oldest = list(self._started)[:max(overflow, 0)]
        for run_id in oldest:
            del self._runs[run_id]
            del self._started[run_id]

        if stale or oldest:
            logger.debug(f"Evicted {len(stale)} expired and {len(oldest)} oldest simulation runs")

    def reset(self, run_id: str) -> None:
        """Discard a run"""
        with self._lock:
            if run_id not in self._runs:
                raise create_not_found_error("simulation run", run_id)
            del self._runs[run_id]
            del self._started[run_id]
        logger.info(f"Simulation {run_id} reset")
