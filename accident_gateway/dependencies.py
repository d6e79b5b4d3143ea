from fastapi import Request

from accident_gateway.config import Settings
from accident_gateway.services.ai_service import ModelClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_model_client(request: Request) -> ModelClient:
    return request.app.state.model_client
