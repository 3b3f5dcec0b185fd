"""
Notes Backend — Note Request/Response Schemas
==============================================

What:  Pydantic models defining the /api/notes contract.
How:   Response models read straight from ORM rows (`from_attributes`) and
       serialize with the camelCase / `_id` keys the web client expects.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NoteContent(BaseModel):
    """Body of POST /api/notes and PUT /api/notes/{id}."""

    content: str = Field(default="", description="Note text (must not be blank)")


class NoteResponse(BaseModel):
    """
    What:  Full representation of a note.
    Who:   Returned by list, create and update.
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID = Field(serialization_alias="_id", description="Note identifier")
    user_id: uuid.UUID = Field(serialization_alias="userId", description="Owner identifier")
    content: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer checks.
    """

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    auth: str = Field(description="Sign-in configuration: configured, unconfigured")
    uptime_seconds: float = Field(description="Seconds since service started")
