"""Health check endpoint."""

from ...core.registry import get_gateway


async def health() -> dict:
    """GET /health"""
    settings = get_gateway().settings
    return {
        "status": "ok",
        "service": settings.service_name,
        "reasoning_display": settings.features.show_reasoning,
        "thinking_mode": settings.features.enable_thinking_mode,
        "detailed_responses": settings.features.force_detailed_responses,
    }
