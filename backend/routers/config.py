"""Configuration API endpoints"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from services.config_manager import ConfigManager

router = APIRouter()

SECRET_FIELDS = {"openai": "apiKey", "jira": "apiToken"}


class ConfigUpdateRequest(BaseModel):
    """Request to update configuration"""

    openai: dict | None = None
    relay: dict | None = None
    jira: dict | None = None


class ConfigResponse(BaseModel):
    """Configuration response"""

    openai: dict
    relay: dict
    jira: dict


def mask_key(key: str) -> str:
    if not key:
        return ""
    if len(key) <= 8:
        return "*" * len(key)
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


@router.get("", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current configuration (secrets masked)"""
    config = ConfigManager.get_instance().get_config()

    sections = {name: dict(config.get(name, {})) for name in ("openai", "relay", "jira")}
    for section, field in SECRET_FIELDS.items():
        sections[section][field] = mask_key(sections[section].get(field, ""))

    return ConfigResponse(**sections)


@router.put("")
async def update_config(request: ConfigUpdateRequest) -> dict[str, Any]:
    """Update configuration"""
    config_manager = ConfigManager.get_instance()
    # Stored values only, so environment secrets never land on disk
    current_config = config_manager.get_stored_config()

    # Update only provided sections, merging keys
    for section, values in request.model_dump(exclude_none=True).items():
        current_config[section] = {**current_config.get(section, {}), **values}

    config_manager.save_config(current_config)

    return {"status": "success", "message": "Configuration updated"}
