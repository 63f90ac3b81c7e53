"""Service wiring."""

from .services import Services, build_services, get_llm_provider

__all__ = ["Services", "build_services", "get_llm_provider"]
