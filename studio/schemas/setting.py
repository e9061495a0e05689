"""
Setting Schemas
Pydantic models for settings API.
"""

from typing import Optional
from pydantic import BaseModel


class SettingUpdate(BaseModel):
    value: str


class SettingResponse(BaseModel):
    key: str
    value: Optional[str]
