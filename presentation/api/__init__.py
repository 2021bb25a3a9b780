from .catalog_api import catalog_router

__all__ = ["catalog_router"]
