"""
Analytics Domain Models

Payloads for the append-only telemetry tables (page visits, product
views, activity and error logs).

Author: TM3
Date: 2026-02-20
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any


CRITICAL_ERROR_TYPE = "critical"

TREND_RANGES = (7, 30, 90)


class PageVisitCreate(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=100)
    page_path: str = Field(..., min_length=1, max_length=500)
    referrer: Optional[str] = Field(None, max_length=1000)
    user_agent: Optional[str] = Field(None, max_length=500)


class ProductViewCreate(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=100)
    product_id: str
    view_duration_seconds: Optional[int] = Field(None, ge=0)


class ActivityLogCreate(BaseModel):
    action_type: str = Field(..., min_length=1, max_length=100)
    action_details: Optional[Dict[str, Any]] = None
    page_path: Optional[str] = Field(None, max_length=500)


class ErrorLogCreate(BaseModel):
    error_message: str = Field(..., min_length=1, max_length=5000)
    error_type: Optional[str] = Field(None, max_length=100)
    error_stack: Optional[str] = Field(None, max_length=20000)
    page_path: Optional[str] = Field(None, max_length=500)
    session_id: Optional[str] = Field(None, max_length=100)
    user_agent: Optional[str] = Field(None, max_length=500)
    additional_context: Optional[Dict[str, Any]] = None

    @property
    def is_critical(self) -> bool:
        return self.error_type == CRITICAL_ERROR_TYPE
