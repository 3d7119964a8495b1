"""
Request DTOs for the email test endpoint.

TestEmailRequest — POST /api/test-email
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TestEmailRequest(BaseModel):
    """Request body for POST /api/test-email.

    ``type`` is one of ``verification``, ``welcome``, ``reset``, ``login``,
    ``email-change`` or ``all``.
    """

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(populate_by_name=True)

    to: str = ""
    type: str = "all"
    user_name: str = Field(
        default="Test User",
        validation_alias=AliasChoices("user_name", "userName"),
    )
