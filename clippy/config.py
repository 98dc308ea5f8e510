"""
Application configuration.

Settings live in config/config.yaml. Credentials can also come from the
environment so they never have to be written to disk:

    GIGACHAT_API_KEY, GIGACHAT_MODEL, GIGACHAT_TEMPERATURE, GIGACHAT_MAX_TOKENS
    OPENAI_API_KEY, USE_OPENAI
    GOOGLE_CLOUD_API_KEY, GOOGLE_CLOUD_PROJECT_ID

Environment values win over the YAML file.
"""

import logging
import os
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "config.yaml"

ASSISTANT_NAME = "Скрепыш"


def _default_system_prompt(name: str) -> str:
    return (
        f"Ты {name}, дружелюбный персональный помощник.\n"
        "Твоя цель - помогать пользователю с информацией и общением.\n"
        "Возможности:\n"
        "- Предоставлять информацию о погоде\n"
        "- Показывать курсы валют (доллар, евро к рублю)\n"
        "- Общаться на различные темы\n"
        "Отвечай кратко, полезно и дружелюбно."
    )


@dataclass
class GigaChatConfig:
    api_key: str = ""
    model: str = "GigaChat:latest"
    base_url: str = "https://gigachat.devices.sberbank.ru/api/v1"
    temperature: float = 0.7
    max_tokens: int = 500
    timeout: float = 30.0


@dataclass
class OpenAIConfig:
    api_key: str = ""
    enabled: bool = False
    model: str = "gpt-3.5-turbo"
    base_url: str = "https://api.openai.com/v1"
    temperature: float = 0.7
    max_tokens: int = 200
    timeout: float = 30.0


@dataclass
class LLMConfig:
    gigachat: GigaChatConfig = field(default_factory=GigaChatConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)

    @property
    def use_openai(self) -> bool:
        """OpenAI is only used when enabled AND a key is present."""
        return self.openai.enabled and bool(self.openai.api_key)


@dataclass
class TTSConfig:
    enabled: bool = True
    provider: str = "edge"  # "edge" or "google"
    voice: str = "ru-RU-DmitryNeural"
    rate: str = "+0%"
    pitch: str = "+0Hz"
    google_api_key: str = ""
    google_project_id: str = ""
    google_voice: str = "ru-RU-Wavenet-D"
    language_code: str = "ru-RU"


@dataclass
class WindowConfig:
    width: int = 720
    height: int = 520
    x: int = -1  # -1 = auto (right side)
    y: int = -1  # -1 = auto (bottom)
    margin: int = 20
    on_top: bool = True
    transparent: bool = True
    image_path: str = ""
    image_max_size: int = 133
    background_threshold: float = 50.0
    fps: int = 60


@dataclass
class BubbleConfig:
    max_chars_per_line: int = 40
    max_height: int = 120
    gap: float = 20.0
    prefer_left: bool = True
    font_family: str = "Helvetica"
    font_size: int = 12


@dataclass
class StorageConfig:
    enabled: bool = True
    path: str = "data/clippy.db"


@dataclass
class WidgetsConfig:
    enabled: bool = True
    city: str = "Москва"
    currencies: list[str] = field(default_factory=lambda: ["USD", "EUR", "CNY"])


@dataclass
class AppConfig:
    """Top-level configuration tree."""
    assistant_name: str = ASSISTANT_NAME
    system_prompt: str = ""
    history_limit: int = 10
    greeting_delay: float = 3.0
    log_level: str = "INFO"
    log_file: str = "logs/clippy.log"
    llm: LLMConfig = field(default_factory=LLMConfig)
    tts: TTSConfig = field(default_factory=TTSConfig)
    window: WindowConfig = field(default_factory=WindowConfig)
    bubble: BubbleConfig = field(default_factory=BubbleConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    widgets: WidgetsConfig = field(default_factory=WidgetsConfig)

    def __post_init__(self):
        if not self.system_prompt:
            self.system_prompt = _default_system_prompt(self.assistant_name)
        if self.history_limit < 1:
            raise ValueError(f"history_limit must be >= 1, got {self.history_limit}")


def _build(cls, data: Optional[Mapping[str, Any]]):
    """Recursively build a dataclass from a (possibly partial) mapping."""
    data = data or {}
    kwargs = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        factory = f.default_factory
        if factory is not MISSING and is_dataclass(factory):
            kwargs[f.name] = _build(factory, value)
        else:
            kwargs[f.name] = value
    unknown = set(data) - {f.name for f in fields(cls)}
    if unknown:
        logger.warning(f"Unknown config keys in [{cls.__name__}]: {sorted(unknown)}")
    return cls(**kwargs)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def apply_env_overrides(config: AppConfig, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Overlay credentials and toggles from environment variables."""
    env = os.environ if environ is None else environ

    giga = config.llm.gigachat
    giga.api_key = env.get("GIGACHAT_API_KEY", giga.api_key)
    giga.model = env.get("GIGACHAT_MODEL", giga.model)
    try:
        if "GIGACHAT_TEMPERATURE" in env:
            giga.temperature = float(env["GIGACHAT_TEMPERATURE"])
        if "GIGACHAT_MAX_TOKENS" in env:
            giga.max_tokens = int(env["GIGACHAT_MAX_TOKENS"])
    except ValueError as e:
        logger.warning(f"Ignoring invalid GigaChat setting from environment: {e}")

    openai = config.llm.openai
    openai.api_key = env.get("OPENAI_API_KEY", openai.api_key)
    if "USE_OPENAI" in env:
        openai.enabled = _env_bool(env["USE_OPENAI"])

    config.tts.google_api_key = env.get("GOOGLE_CLOUD_API_KEY", config.tts.google_api_key)
    config.tts.google_project_id = env.get("GOOGLE_CLOUD_PROJECT_ID", config.tts.google_project_id)
    return config


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """
    Load configuration from YAML and the environment.

    A missing file is not an error: defaults are used with a warning.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    data: dict = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"📁 Configuration loaded from {path}")
    else:
        logger.warning(f"Config file not found: {path}, using defaults")

    config = _build(AppConfig, data)
    return apply_env_overrides(config, environ)
