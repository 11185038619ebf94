"""Firehose data transformation event and response models."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import RecordResult


class FirehoseRecord(BaseModel):
    """A single record handed to the transformation function."""

    model_config = ConfigDict(populate_by_name=True)

    record_id: str = Field(..., alias="recordId", description="Firehose record id")
    data: str = Field("", description="Base64 encoded record payload")
    approximate_arrival_timestamp: int | None = Field(
        None,
        alias="approximateArrivalTimestamp",
        description="Arrival time in epoch milliseconds",
    )


class FirehoseEvent(BaseModel):
    """Firehose data transformation invocation event."""

    model_config = ConfigDict(populate_by_name=True)

    invocation_id: str | None = Field(None, alias="invocationId")
    delivery_stream_arn: str | None = Field(None, alias="deliveryStreamArn")
    region: str | None = Field(None, description="Region of the delivery stream")
    records: list[FirehoseRecord] = Field(default_factory=list)


class FirehoseResponseRecord(BaseModel):
    """A transformed record returned to Firehose."""

    model_config = ConfigDict(populate_by_name=True)

    record_id: str = Field(..., alias="recordId")
    result: RecordResult = Field(RecordResult.OK)
    data: str = Field(..., description="Base64 encoded (possibly enriched) payload")


class FirehoseResponse(BaseModel):
    """Transformation response; one record per input record, same order."""

    records: list[FirehoseResponseRecord] = Field(default_factory=list)

    def to_lambda_response(self) -> dict:
        """Serialize into the dict shape Firehose expects."""
        return self.model_dump(mode="json", by_alias=True)
