from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from .bots import BotRegistry
from .config import Settings

# API Key Authentication Setup
API_KEY_NAME = "x-api-key"
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_bots(request: Request) -> BotRegistry:
    return request.app.state.bots


async def get_api_key(request: Request, api_key: str = Security(api_key_header)):
    if not api_key or api_key not in get_settings(request).api_keys:
        raise HTTPException(
            status_code=403,
            detail="Invalid API Key"
        )
    return api_key
