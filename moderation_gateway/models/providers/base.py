from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, List

#unified model errors
class ModelError(RuntimeError): ...
class ModelTimeout(ModelError): ...

class ModelStatusError(ModelError):
    """Upstream answered with a non-success HTTP status."""
    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"upstream returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body

@dataclass(frozen=True)
class ChatRequest:
    model: str
    messages: List[Dict[str, Any]]
    params: Dict[str, Any] | None = None
    json_mode: bool = False #force response_format json_object if true

@dataclass(frozen=True)
class ModelResponse:
    content: str
    raw: Any #provider-native response obj/dict
    meta: Dict[str, Any] #timings, token counts, model, created_at, etc.

class ModelProvider(ABC):
    @abstractmethod
    def chat(self, req: ChatRequest) -> ModelResponse:
        raise NotImplementedError
