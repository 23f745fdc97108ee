# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the ticket endpoints."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class CreateTicketRequest(BaseModel):
    title: str = Field(min_length=5, max_length=255)
    description: str = Field(min_length=10)
    priority: Literal["BASSE", "MOYENNE", "HAUTE", "CRITIQUE"] = "MOYENNE"


class TicketRow(BaseModel):
    id: int
    title: str
    description: str
    status: str
    priority: str
    created_by_id: str
    assigned_to_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TicketListResponse(BaseModel):
    success: bool = True
    tickets: List[TicketRow]


class TicketDetailResponse(BaseModel):
    success: bool = True
    ticket: TicketRow
