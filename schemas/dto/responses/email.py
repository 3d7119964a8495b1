"""
Response DTOs for the email diagnostics endpoints.

EmailConfigDiagnosis — GET /api/debug/email-config
TestEmailInfo        — ``info`` block of the test-email response
TestEmailResponse    — GET/POST /api/test-email
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class EmailConfigDiagnosis(BaseModel):
    """Which email settings are present, plus detected misconfigurations."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    config: dict[str, str]
    issues: list[str]
    recommendations: list[str]


class TestEmailInfo(BaseModel):
    __test__ = False

    model_config = ConfigDict(populate_by_name=True)

    recipient: str
    email_type: str
    provider: str
    sender: str


class TestEmailResponse(BaseModel):
    """Per-kind send outcomes of a test run."""

    __test__ = False

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    results: dict[str, bool]
    info: Optional[TestEmailInfo] = None
