#
import datetime
import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """
    Await `value` if it is awaitable (coroutines, futures, async sqlalchemy results), otherwise return it
    """
    if inspect.isawaitable(value):
        return await value
    return value


def utc_timestamp() -> str:
    """
    :return: current UTC time as a sortable ISO 8601 string with millisecond precision, eg. 2024-01-31T12:00:00.000Z
    """
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
