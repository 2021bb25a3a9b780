from .catalog_schemas import ErrorResponse, HealthResponse, RenderResponse

__all__ = ["ErrorResponse", "HealthResponse", "RenderResponse"]
