from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Always `OK` while the service is serving")
    service: str = Field(description="Name of the service")
    version: str = Field(description="Version of the service")
    timestamp: str = Field(description="Current server time (ISO 8601)")
