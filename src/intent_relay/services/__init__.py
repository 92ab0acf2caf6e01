"""Application services."""

from intent_relay.services.container import Services, build_services
from intent_relay.services.pipeline import IntentPipeline
from intent_relay.services.text import TextGenerator
from intent_relay.services.tools import DEMO_TOOLS, Tool, ToolRegistry

__all__ = [
    "DEMO_TOOLS",
    "IntentPipeline",
    "Services",
    "TextGenerator",
    "Tool",
    "ToolRegistry",
    "build_services",
]
