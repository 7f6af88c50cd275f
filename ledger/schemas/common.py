from datetime import datetime
from typing import Annotated, List, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator


# ids are stored as sqlite INTEGER, a signed 64-bit value
MIN_ID = -(2**63)
MAX_ID = 2**63 - 1

RecordId = Annotated[int, Field(ge=MIN_ID, le=MAX_ID)]

# booleans, NaN and infinities are not amounts
Amount = Union[StrictInt, Annotated[StrictFloat, Field(allow_inf_nan=False)]]


def ensure_timestamp(value: str) -> str:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on.
    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"date '{value}' is not an ISO-8601 timestamp") from exc
    return value


class SessionResponse(BaseModel):
    session_id: int


class Category(BaseModel):
    id: RecordId
    name: str


class CategoryRename(BaseModel):
    name: str


class CategoryAssignment(BaseModel):
    category_id: RecordId = Field(validation_alias=AliasChoices("category_id", "categoryId", "id"))


class TransactionFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    amount: Amount
    external_iban: str = Field(
        validation_alias=AliasChoices("external-iban", "external_iban"),
        serialization_alias="external-iban",
    )
    type: Literal["deposit", "withdrawal"]
    category: Category | None

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        return ensure_timestamp(value)


class Transaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: RecordId
    date: str
    amount: Amount
    external_iban: str = Field(
        validation_alias=AliasChoices("external-iban", "external_iban"),
        serialization_alias="external-iban",
    )
    type: Literal["deposit", "withdrawal"]
    category: Category | None

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        return ensure_timestamp(value)

    @classmethod
    def from_fields(cls, transaction_id: int, fields: TransactionFields) -> "Transaction":
        return cls(id=transaction_id, **fields.model_dump())


class EndpointStats(BaseModel):
    endpoint: str
    count: int
    avgMs: float
    maxMs: float
    errorCount: int


class PerformanceResponse(BaseModel):
    time: str
    memory: str
    threads: int
    requestsServed: int
    endpointStats: List[EndpointStats] = Field(default_factory=list)
