from .entity_lifecycle import EntityLifecycleUseCase

__all__ = ["EntityLifecycleUseCase"]
