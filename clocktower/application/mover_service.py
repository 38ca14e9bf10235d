import logging

from clocktower.application.errors import BatchFailedError
from clocktower.application.executor import PlanExecutor
from clocktower.application.gate import AdmissionGate
from clocktower.application.guards import facilitator_only
from clocktower.application.planner import plan_day, plan_night
from clocktower.application.ports import PlatformClient
from clocktower.application.rotator import ResourceRotator
from clocktower.application.topology import TopologyService
from clocktower.config import Config
from clocktower.domain.models import BatchResult, RelocationPlan

log = logging.getLogger(__name__)


class MoverService:
    def __init__(
        self,
        topology: TopologyService,
        executor: PlanExecutor,
        rotator: ResourceRotator[PlatformClient],
        config: Config,
    ):
        self._topology = topology
        self._executor = executor
        self._rotator = rotator
        self._config = config
        self._last_results: dict[str, BatchResult] = {}
        self.gate = AdmissionGate(self.execute_plan)

    async def plan_and_submit_day(self, group_id: str) -> RelocationPlan:
        log.info("Moving group %s to day.", group_id)
        snapshot = await self._topology.build_snapshot(group_id)
        plan = plan_day(snapshot)
        self.gate.submit(plan)
        return plan

    async def plan_and_submit_night(
        self, group_id: str, requester_id: str
    ) -> RelocationPlan:
        log.info("Moving group %s to night.", group_id)
        snapshot = await self._topology.build_snapshot(group_id)
        plan = plan_night(snapshot, requester_id)
        self.gate.submit(plan)
        return plan

    @facilitator_only
    async def start_day(self, group_id: str, requester_id: str) -> RelocationPlan:
        return await self.plan_and_submit_day(group_id)

    @facilitator_only
    async def start_night(self, group_id: str, requester_id: str) -> RelocationPlan:
        return await self.plan_and_submit_night(group_id, requester_id)

    async def execute_plan(self, plan: RelocationPlan) -> BatchResult:
        try:
            result = await self._executor.execute(
                plan, self._config.deadline_seconds, self._rotator
            )
        except BatchFailedError as exc:
            self._last_results[plan.group_id] = exc.result
            raise
        self._last_results[plan.group_id] = result
        log.info("Group %s: %s", plan.group_id, result.summary())
        return result

    def last_result(self, group_id: str) -> BatchResult | None:
        return self._last_results.get(group_id)
