"""
Pydantic schemas for the users and health endpoints
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


class UserResponse(BaseModel):
    """One user as returned by GET /users"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class UserCreated(UserResponse):
    """Response body for POST /users/create"""
    message: str = "User created successfully"


class HealthStatus:
    """Values of HealthResponse.status"""
    OK = "ok"
    NOT_INITIALIZED = "database_not_initialized"
    DATABASE_ERROR = "database_error"


class HealthResponse(BaseModel):
    """Response body for GET /health; unset optional fields are omitted"""
    status: str = Field(..., description="ok, database_not_initialized or database_error")
    database: bool = False
    timestamp: str = Field(..., description="RFC 3339 timestamp")
    hostname: str
    db_host: Optional[str] = Field(None, description="Address of the database server that answered")
    retry_count: Optional[int] = Field(None, description="Startup rounds used to connect")
