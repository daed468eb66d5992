# Response shaping: omit/pick/render of the action results
import asyncio
from typing import Any, Iterable, List, Mapping

from .options import ResponseOptions
from .util import maybe_await


def omit(record: Mapping[str, Any], *fields: str) -> dict:
    return {key: value for key, value in record.items() if key not in fields}


def pick(record: Mapping[str, Any], *fields: str) -> dict:
    return {key: record[key] for key in fields if key in record}


async def shape(record: Any, options: ResponseOptions) -> Any:
    """
    Apply the response options to a single record
    """
    if record is None:
        return None
    result = record
    if options.omit:
        result = omit(result, *options.omit)
    if options.pick:
        result = pick(result, *options.pick)
    if options.render is not None:
        result = await maybe_await(options.render(result))
    return result


async def shape_collection(records: Iterable[Any], options: ResponseOptions) -> List[Any]:
    """
    Shape every record independently, the result has the same order as `records`
    """
    return list(await asyncio.gather(*(shape(record, options) for record in records)))
