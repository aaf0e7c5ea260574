"""Built-in remote AI service."""

from src.application.ai_service.use_case import AIServiceUseCase

__all__ = ["AIServiceUseCase"]
