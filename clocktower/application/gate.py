import asyncio
import logging
from typing import Any, Awaitable, Callable

from clocktower.application.errors import GateBusyError, MoverError
from clocktower.domain.models import RelocationPlan

log = logging.getLogger(__name__)

PlanHandler = Callable[[RelocationPlan], Awaitable[Any]]


class AdmissionGate:
    """Single-slot handoff between the request path and the plan consumer.

    A plan is accepted only when nothing is waiting in the slot and nothing
    is executing. Rejected plans are never queued.
    """

    def __init__(self, handler: PlanHandler):
        self._handler = handler
        self._slot: asyncio.Queue[RelocationPlan] = asyncio.Queue(maxsize=1)
        self._executing = False

    @property
    def busy(self) -> bool:
        return self._executing or self._slot.full()

    def submit(self, plan: RelocationPlan) -> None:
        if self.busy:
            raise GateBusyError()
        self._slot.put_nowait(plan)

    async def run_forever(self) -> None:
        while True:
            plan = await self._slot.get()
            self._executing = True
            try:
                log.info("Received new movement plan: %s", plan)
                await self._handler(plan)
            except MoverError as exc:
                log.error("Executing movement plan failed: %s", exc)
            except Exception:
                log.exception("Unexpected error while executing movement plan")
            else:
                log.info("Successfully finished movement plan for group %s.", plan.group_id)
            finally:
                self._executing = False
                self._slot.task_done()
