from pydantic import BaseModel, ConfigDict, Field


class LinkRecord(BaseModel):
    """
    Stored mapping, independent of the backend that holds it.

    from_attributes=True lets the SQL store build it straight from a Link row.
    """
    original_url: str
    short_url: int

    model_config = ConfigDict(from_attributes=True, frozen=True)


class NormalizedURL(BaseModel):
    """Result of a successful validation; hostname is never persisted."""
    original: str
    hostname: str


class ShortURLResponse(BaseModel):
    original_url: str = Field(..., description="The URL exactly as submitted")
    short_url: int = Field(..., description="Sequential identifier used for the redirect")


class ErrorResponse(BaseModel):
    """Body-level error, always sent with HTTP 200."""
    error: str
