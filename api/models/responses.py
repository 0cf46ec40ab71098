# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from typing import Optional
from pydantic import BaseModel, Field

from .base import CamelModel


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class SessionTokenResponse(CamelModel):
    """Issued session token."""

    access_token: str = Field(..., description="Bearer token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Lifetime in seconds")
    expires_at: str = Field(..., description="Expiry timestamp (ISO 8601)")
