"""
Settings API Routes
Read and write key/value settings (API key, generation delay).
"""

from typing import List
from fastapi import APIRouter, Depends

from studio.api.deps import get_settings_store
from studio.schemas.setting import SettingResponse, SettingUpdate
from studio.services.settings_store import SettingsStore
from studio.workers.runner import API_KEY_SETTING

router = APIRouter()

SECRET_KEYS = {API_KEY_SETTING}


def _mask(key: str, value: str) -> str:
    if key in SECRET_KEYS and value:
        return "***" + value[-4:] if len(value) > 8 else "***"
    return value


@router.get("", response_model=List[SettingResponse])
async def list_settings(settings_store: SettingsStore = Depends(get_settings_store)):
    """All settings; secrets are masked."""
    return [
        {"key": key, "value": _mask(key, value)}
        for key, value in settings_store.all().items()
    ]


@router.get("/{key}", response_model=SettingResponse)
async def get_setting(key: str, settings_store: SettingsStore = Depends(get_settings_store)):
    value = settings_store.get(key)
    return {"key": key, "value": _mask(key, value) if value is not None else None}


@router.put("/{key}", response_model=SettingResponse)
async def set_setting(
    key: str,
    update: SettingUpdate,
    settings_store: SettingsStore = Depends(get_settings_store),
):
    settings_store.set(key, update.value)
    return {"key": key, "value": _mask(key, update.value)}
