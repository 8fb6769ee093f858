from __future__ import annotations
from typing import Optional, Dict, Any, List, Union
from pathlib import Path
from dataclasses import dataclass
from enum import Enum
import os
import yaml
import time
import logging
import threading

from .prompts import PromptManager
from .providers.base import ChatRequest, ModelResponse, ModelError, ModelTimeout
from .providers.openai_sdk import OpenAIProvider, resolve_api_key

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "config.yaml"
CONFIG_ENV_VAR = "MODERATION_CONFIG"


class Provider(Enum):
    OPENAI = "openai"

@dataclass(frozen=True)
class TaskConfig:
    provider: str
    model: str
    params: Dict[str, Any]
    json_mode: bool = False


def default_config_path() -> Path:
    return Path(os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)


class ModelManager:
    def __init__(self, config_path: Union[Path, str, None] = None, prompts_dir: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else default_config_path()
        self.config = self._load_config()
        self._providers = {}
        self._stats = {} #performance tracking
        self._lock = threading.Lock() #providers and stats are shared across threadpool workers

        #initialize prompt manager
        self.prompts = PromptManager(prompts_dir or PROJECT_ROOT / "prompts")

    def _load_config(self) -> Dict:
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config not found: {self.config_path}")
        with open(self.config_path) as f:
            config = yaml.safe_load(f) or {}

        if 'providers' not in config:
            raise ValueError("Config missing 'providers'")
        if 'tasks' not in config:
            raise ValueError("Config missing 'tasks'")

        for task_name, task_cfg in config['tasks'].items():
            if 'provider' not in task_cfg:
                raise ValueError(f"Task '{task_name}' missing provider")
            if 'model' not in task_cfg:
                raise ValueError(f"Task '{task_name}' missing model")

            provider_name = task_cfg['provider']
            if provider_name not in config['providers']:
                raise ValueError(f"Task '{task_name}' references unknown provider '{provider_name}'")

        return config

    def task_config(self, task: str) -> TaskConfig:
        if task not in self.config["tasks"]:
            raise ValueError(f"Unknown task: {task}")
        task_cfg = self.config["tasks"][task]
        return TaskConfig(
            provider=task_cfg["provider"],
            model=task_cfg["model"],
            params=dict(task_cfg.get("params") or {}),
            json_mode=bool(task_cfg.get("json_mode", False)),
        )

    def has_credentials(self, task: str) -> bool:
        """True when the provider behind ``task`` has an API key available. Never builds the provider."""
        provider_cfg = self.config["providers"][self.task_config(task).provider]
        settings = provider_cfg.get("settings") or {}
        return resolve_api_key(settings.get("api_key"), settings.get("api_key_env", "OPENAI_API_KEY")) is not None

    def _get_provider(self, provider_name: str):
        with self._lock:
            if provider_name in self._providers:
                return self._providers[provider_name]
            if provider_name not in self.config['providers']:
                raise ValueError(f"Unknown provider: {provider_name}")

            provider_cfg = self.config["providers"][provider_name]
            provider_type = provider_cfg["type"]
            settings = provider_cfg.get("settings") or {}

            if provider_type == Provider.OPENAI.value:
                provider = OpenAIProvider(**settings)
            else:
                raise ValueError(f"Unknown provider type: {provider_type}")
            self._providers[provider_name] = provider
        logger.info(f"initialized provider: {provider_name}")
        return provider

    def call(self, task: str, messages: List[Dict[str, Any]], **params_override) -> ModelResponse:
        """Send caller-assembled messages to the model configured for ``task``."""
        start_time = time.perf_counter()

        task_cfg = self.task_config(task)
        params = {**task_cfg.params, **params_override}

        request = ChatRequest(
            model=task_cfg.model,
            messages=messages,
            params=params,
            json_mode=task_cfg.json_mode,
        )

        provider = self._get_provider(task_cfg.provider)
        try:
            response = provider.chat(request)
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            self._track_stats(task, elapsed_ms, success=True)
            return response
        except (ModelTimeout, ModelError):
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            self._track_stats(task, elapsed_ms, success=False)
            raise

    def _track_stats(self, task: str, latency_ms: float, success: bool):
        with self._lock:
            if task not in self._stats:
                self._stats[task] = {
                    'total_calls': 0,
                    'successful_calls': 0,
                    'total_latency_ms': 0
                }

            stats = self._stats[task]
            stats['total_calls'] += 1
            if success:
                stats['successful_calls'] += 1
                stats['total_latency_ms'] += latency_ms

    def get_stats(self, task: Optional[str] = None) -> Dict:
        """Snapshot of call statistics, for one task or all of them."""
        with self._lock:
            if task:
                return dict(self._stats.get(task, {}))
            return {name: dict(stats) for name, stats in self._stats.items()}

    def cleanup(self):
        with self._lock:
            providers = list(self._providers.items())
            self._providers.clear()

        for name, provider in providers:
            if hasattr(provider, 'cleanup'):
                try:
                    provider.cleanup()
                    logger.info(f"Cleaned up provider: {name}")
                except Exception as e:
                    logger.error(f"Cleanup failed for {name}: {e}")
