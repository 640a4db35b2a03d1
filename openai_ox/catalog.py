"""
Model catalog: list available models and fetch one by id.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .models import parse_response
from .transport import ApiRequest, HttpTransport

API_URL = "v1/models"


class Model(BaseModel):
    id: str
    object: str
    owned_by: str
    created: int | None = None
    permission: list[dict] = Field(default_factory=list)

    def __str__(self) -> str:
        return self.id


class ModelList(BaseModel):
    data: list[Model]
    object: str

    @property
    def ids(self) -> list[str]:
        return [model.id for model in self.data]


async def list_models(transport: HttpTransport) -> ModelList:
    raw = await transport.send(ApiRequest("GET", API_URL))
    return parse_response(ModelList, raw)


async def get_model(transport: HttpTransport, model_id: str) -> Model:
    raw = await transport.send(ApiRequest("GET", f"{API_URL}/{model_id}"))
    return parse_response(Model, raw)
