from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar, cast

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def facilitator_only(func: F) -> F:
    @wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        group_id = kwargs.get("group_id")
        requester_id = kwargs.get("requester_id")
        if group_id is None:
            if not args:
                raise ValueError("group_id is required")
            group_id = args[0]
        if requester_id is None:
            if len(args) < 2:
                raise ValueError("requester_id is required")
            requester_id = args[1]
        if not await self._topology.is_facilitator(group_id, requester_id):
            raise PermissionError(
                f"participant {requester_id} is not a {self._config.facilitator_role}"
            )
        return await func(self, *args, **kwargs)

    return cast(F, wrapper)
