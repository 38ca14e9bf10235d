import asyncio
import logging
import random

from clocktower.application.errors import BatchFailedError, PlatformError
from clocktower.application.ports import PlatformClient
from clocktower.application.rotator import ResourceRotator
from clocktower.domain.models import BatchResult, RelocationPlan
from clocktower.domain.phase import MoveOutcome

log = logging.getLogger(__name__)

MAX_ATTEMPTS_PER_PARTICIPANT = 2
RETRY_BACKOFF_SECONDS = 0.05
JITTER_WINDOW_SECONDS = 1.0
REQUEST_TIMEOUT_SECONDS = 5.0


class PlanExecutor:
    """Runs every move of a plan on a fixed pool of workers.

    Each participant gets up to ``max_attempts`` tries, each through the next
    client from the rotator. A single deadline covers the whole plan and is
    checked before every attempt; calls already in flight are bounded by the
    request timeout or the remaining time, whichever is shorter, instead of
    being cancelled. A move that raises anything other than a platform error
    is recorded as failed and the rest of the plan carries on.
    """

    def __init__(
        self,
        concurrency: int = 3,
        max_attempts: int = MAX_ATTEMPTS_PER_PARTICIPANT,
        retry_backoff: float = RETRY_BACKOFF_SECONDS,
        jitter_window: float = JITTER_WINDOW_SECONDS,
        request_timeout: float = REQUEST_TIMEOUT_SECONDS,
        rng: random.Random | None = None,
    ):
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        self._concurrency = concurrency
        self._max_attempts = max_attempts
        self._retry_backoff = retry_backoff
        self._jitter_window = jitter_window
        self._request_timeout = request_timeout
        self._rng = rng or random.Random()

    async def execute(
        self,
        plan: RelocationPlan,
        deadline_seconds: float,
        rotator: ResourceRotator[PlatformClient],
    ) -> BatchResult:
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + deadline_seconds

        tasks: asyncio.Queue[tuple[str, str]] = asyncio.Queue(maxsize=len(plan) or 1)
        for participant_id, room_id in plan.moves.items():
            tasks.put_nowait((participant_id, room_id))

        outcomes: dict[str, MoveOutcome] = {}
        workers = [
            asyncio.create_task(
                self._worker(plan, tasks, outcomes, deadline, rotator)
            )
            for _ in range(min(self._concurrency, len(plan)))
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        result = BatchResult(
            group_id=plan.group_id,
            phase=plan.phase,
            outcomes=outcomes,
            elapsed_seconds=loop.time() - started,
        )
        if not result.ok:
            raise BatchFailedError(result)
        return result

    async def _worker(
        self,
        plan: RelocationPlan,
        tasks: asyncio.Queue[tuple[str, str]],
        outcomes: dict[str, MoveOutcome],
        deadline: float,
        rotator: ResourceRotator[PlatformClient],
    ) -> None:
        while True:
            try:
                participant_id, room_id = tasks.get_nowait()
            except asyncio.QueueEmpty:
                return
            outcomes[participant_id] = await self._move_one(
                plan, participant_id, room_id, deadline, rotator
            )
            tasks.task_done()

    async def _move_one(
        self,
        plan: RelocationPlan,
        participant_id: str,
        room_id: str,
        deadline: float,
        rotator: ResourceRotator[PlatformClient],
    ) -> MoveOutcome:
        loop = asyncio.get_running_loop()
        for attempt in range(1, self._max_attempts + 1):
            if attempt == 1 and self._jitter_window > 0:
                # Spread the opening burst of a large plan over the window.
                await asyncio.sleep(
                    self._rng.uniform(0, self._jitter_window / len(plan))
                )
            remaining = deadline - loop.time()
            if remaining <= 0:
                log.warning(
                    "Deadline exceeded before moving %s to %s.", participant_id, room_id
                )
                return MoveOutcome.CANCELLED

            client = rotator.next()
            try:
                await client.move_member(
                    plan.group_id,
                    participant_id,
                    room_id,
                    timeout=min(remaining, self._request_timeout),
                )
            except PlatformError as exc:
                log.warning(
                    "Attempt %d to move %s to %s failed: %s",
                    attempt,
                    participant_id,
                    room_id,
                    exc,
                )
                if attempt < self._max_attempts:
                    await asyncio.sleep(self._retry_backoff)
                continue
            except Exception:
                log.exception(
                    "Unexpected error moving %s to %s.", participant_id, room_id
                )
                return MoveOutcome.FAILED
            return MoveOutcome.MOVED

        log.error(
            "Could not move %s after %d attempts.", participant_id, self._max_attempts
        )
        return MoveOutcome.FAILED
