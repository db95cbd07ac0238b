"""Immutable gateway settings built once at startup.

The YAML config (see ``config_loader``) is read into plain dicts; this module
turns it, plus a handful of environment overrides, into a frozen
``GatewaySettings`` that is shared read-only by every request.
"""

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .config_loader import DEFAULT_CONFIG_PATH, load_config, resolve_config_path

logger = logging.getLogger("nim-bridge")

DEFAULT_API_BASE = "https://integrate.api.nvidia.com/v1"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_SERVICE_NAME = "OpenAI to NVIDIA NIM Proxy"
DEFAULT_OWNED_BY = "nvidia-nim-proxy"

DEFAULT_MODEL_MAPPING: dict[str, str] = {
    "gpt-3.5-turbo": "nvidia/llama-3.1-nemotron-ultra-253b-v1",
    "gpt-4": "qwen/qwen3-coder-480b-a35b-instruct",
    "gpt-4-turbo": "moonshotai/kimi-k2-instruct-0905",
    "gpt-4o": "deepseek-ai/deepseek-v3.1",
    "claude-3-opus": "openai/gpt-oss-120b",
    "claude-3-sonnet": "openai/gpt-oss-20b",
    "gemini-pro": "qwen/qwen3-next-80b-a3b-thinking",
}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _parse_float(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid numeric setting %r; using %s", value, default)
        return default


def _parse_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid integer setting %r; using %s", value, default)
        return default


@dataclass(frozen=True)
class UpstreamSettings:
    """Where and how to reach the upstream chat-completion API."""

    api_base: str = DEFAULT_API_BASE
    api_key: str = ""
    request_timeout: float = 300.0
    probe_timeout: float = 10.0
    stream_read_timeout: float = 120.0

    @property
    def completions_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/chat/completions"


@dataclass(frozen=True)
class FeatureFlags:
    show_reasoning: bool = False
    enable_thinking_mode: bool = False
    force_detailed_responses: bool = True


@dataclass(frozen=True)
class GenerationDefaults:
    """Values sent upstream when the client leaves a parameter unset."""

    temperature: float = 0.85
    max_tokens: int = 4096
    top_p: float = 0.95
    presence_penalty: float = 0.6
    frequency_penalty: float = 0.3


@dataclass(frozen=True)
class FallbackModels:
    """Upstream models picked by name heuristics when resolution finds nothing."""

    large: str = "meta/llama-3.1-405b-instruct"
    medium: str = "meta/llama-3.1-70b-instruct"
    small: str = "meta/llama-3.1-8b-instruct"


@dataclass(frozen=True)
class GatewaySettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    service_name: str = DEFAULT_SERVICE_NAME
    owned_by: str = DEFAULT_OWNED_BY
    upstream: UpstreamSettings = field(default_factory=UpstreamSettings)
    features: FeatureFlags = field(default_factory=FeatureFlags)
    defaults: GenerationDefaults = field(default_factory=GenerationDefaults)
    fallbacks: FallbackModels = field(default_factory=FallbackModels)
    model_mapping: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_MODEL_MAPPING))
    )

    def __post_init__(self) -> None:
        if not isinstance(self.model_mapping, MappingProxyType):
            object.__setattr__(
                self, "model_mapping", MappingProxyType(dict(self.model_mapping))
            )

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        environ: Optional[Mapping[str, str]] = None,
    ) -> "GatewaySettings":
        """Build settings from a loaded config dict and environment overrides.

        Environment variables win over the config file:
        NIMBRIDGE_HOST, NIMBRIDGE_PORT (or PORT), NIM_API_BASE, NIM_API_KEY,
        NIMBRIDGE_SHOW_REASONING, NIMBRIDGE_ENABLE_THINKING_MODE and
        NIMBRIDGE_FORCE_DETAILED_RESPONSES.
        """
        env = os.environ if environ is None else environ
        proxy_settings = config.get("proxy_settings") or {}
        server_cfg = proxy_settings.get("server") or {}
        upstream_cfg = proxy_settings.get("upstream") or {}
        features_cfg = proxy_settings.get("features") or {}
        defaults_cfg = proxy_settings.get("defaults") or {}
        fallbacks_cfg = proxy_settings.get("fallback_models") or {}
        logging_cfg = proxy_settings.get("logging") or {}

        host = env.get("NIMBRIDGE_HOST") or str(server_cfg.get("host", DEFAULT_HOST))
        port_raw = env.get("NIMBRIDGE_PORT") or env.get("PORT") or server_cfg.get("port")
        port = _parse_int(port_raw, DEFAULT_PORT)

        base_defaults = UpstreamSettings()
        upstream = UpstreamSettings(
            api_base=(
                env.get("NIM_API_BASE")
                or str(upstream_cfg.get("api_base") or DEFAULT_API_BASE)
            ).strip(),
            api_key=env.get("NIM_API_KEY") or str(upstream_cfg.get("api_key") or ""),
            request_timeout=_parse_float(
                upstream_cfg.get("request_timeout"), base_defaults.request_timeout
            ),
            probe_timeout=_parse_float(
                upstream_cfg.get("probe_timeout"), base_defaults.probe_timeout
            ),
            stream_read_timeout=_parse_float(
                upstream_cfg.get("stream_read_timeout"),
                base_defaults.stream_read_timeout,
            ),
        )

        base_flags = FeatureFlags()

        def flag(env_name: str, key: str, default: bool) -> bool:
            raw = env.get(env_name)
            if raw is None:
                raw = features_cfg.get(key)
            if raw is None:
                return default
            return _parse_bool(raw)

        features = FeatureFlags(
            show_reasoning=flag(
                "NIMBRIDGE_SHOW_REASONING", "show_reasoning", base_flags.show_reasoning
            ),
            enable_thinking_mode=flag(
                "NIMBRIDGE_ENABLE_THINKING_MODE",
                "enable_thinking_mode",
                base_flags.enable_thinking_mode,
            ),
            force_detailed_responses=flag(
                "NIMBRIDGE_FORCE_DETAILED_RESPONSES",
                "force_detailed_responses",
                base_flags.force_detailed_responses,
            ),
        )

        base_gen = GenerationDefaults()
        defaults = GenerationDefaults(
            temperature=_parse_float(defaults_cfg.get("temperature"), base_gen.temperature),
            max_tokens=_parse_int(defaults_cfg.get("max_tokens"), base_gen.max_tokens),
            top_p=_parse_float(defaults_cfg.get("top_p"), base_gen.top_p),
            presence_penalty=_parse_float(
                defaults_cfg.get("presence_penalty"), base_gen.presence_penalty
            ),
            frequency_penalty=_parse_float(
                defaults_cfg.get("frequency_penalty"), base_gen.frequency_penalty
            ),
        )

        base_fallbacks = FallbackModels()
        fallbacks = FallbackModels(
            large=str(fallbacks_cfg.get("large") or base_fallbacks.large),
            medium=str(fallbacks_cfg.get("medium") or base_fallbacks.medium),
            small=str(fallbacks_cfg.get("small") or base_fallbacks.small),
        )

        mapping_cfg = config.get("model_mapping")
        if isinstance(mapping_cfg, Mapping):
            model_mapping = {
                str(alias): str(target)
                for alias, target in mapping_cfg.items()
                if alias and target
            }
        else:
            if mapping_cfg is not None:
                logger.warning("model_mapping must be a mapping; using built-in table")
            model_mapping = dict(DEFAULT_MODEL_MAPPING)

        return cls(
            host=host,
            port=port,
            log_level=str(logging_cfg.get("level") or "INFO"),
            service_name=str(proxy_settings.get("service_name") or DEFAULT_SERVICE_NAME),
            owned_by=str(proxy_settings.get("owned_by") or DEFAULT_OWNED_BY),
            upstream=upstream,
            features=features,
            defaults=defaults,
            fallbacks=fallbacks,
            model_mapping=MappingProxyType(model_mapping),
        )


def load_settings(
    path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> GatewaySettings:
    """Load the config file and build settings from it.

    An explicitly named file (argument or NIMBRIDGE_CONFIG) must exist. The
    bundled default is optional; without it the built-in defaults apply.
    """
    env = os.environ if environ is None else environ
    explicit = path or env.get("NIMBRIDGE_CONFIG")
    if explicit is None and not resolve_config_path(DEFAULT_CONFIG_PATH).exists():
        logger.warning(
            "No config file at %s; using built-in defaults", DEFAULT_CONFIG_PATH
        )
        return GatewaySettings.from_config({}, env)
    return GatewaySettings.from_config(load_config(explicit or DEFAULT_CONFIG_PATH), env)
