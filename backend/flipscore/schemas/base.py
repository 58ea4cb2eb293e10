from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps so arithmetic never mixes naive/aware."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase keys, dumps camelCase with ``by_alias``.

    Persistence records arrive camelCased (``yearsInBusiness``,
    ``coverageEachOccur``); REST clients expect the same casing back.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
