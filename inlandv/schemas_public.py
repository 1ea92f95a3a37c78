"""
inlandv/schemas_public.py

Request schemas for the public API.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, validator

from inlandv.models import LeadSource

PHONE_PATTERN = re.compile(r"^(0|\+84)[0-9]{9,10}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class LeadCreateRequest(BaseModel):
    """Contact / consultation request from the public site.

    Fields are all optional at the schema level so that every rule violation
    is reported together by validation_errors() in one 400 response.
    """
    name: Optional[str] = Field(None, description="Contact name (required)")
    phone: Optional[str] = Field(None, description="Vietnamese phone: 0xxxxxxxxx or +84xxxxxxxxx")
    email: Optional[str] = Field(None, description="Required when source is 'contact'")
    message: Optional[str] = Field(None, description="Message (required)")
    source: Optional[str] = Field(None, description="homepage | project | contact")

    class Config:
        extra = "ignore"

    @validator("name", "phone", "email", "message", "source", pre=True)
    def trim_strings(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    def validation_errors(self) -> List[Dict[str, str]]:
        errors: List[Dict[str, str]] = []
        if not self.name:
            errors.append({"field": "name", "message": "Name is required"})
        if not self.phone:
            errors.append({"field": "phone", "message": "Phone is required"})
        elif not PHONE_PATTERN.match(self.phone):
            errors.append({"field": "phone", "message": "Invalid phone number"})
        if self.source == LeadSource.contact.value and not self.email:
            errors.append({"field": "email", "message": "Email is required for contact form"})
        elif self.email and not EMAIL_PATTERN.match(self.email):
            errors.append({"field": "email", "message": "Invalid email format"})
        if not self.message:
            errors.append({"field": "message", "message": "Message is required"})
        if self.source not in {s.value for s in LeadSource}:
            errors.append({"field": "source", "message": "Invalid source"})
        return errors
