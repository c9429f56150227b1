from pydantic import BaseModel, ConfigDict


class CamelModel(BaseModel):
    """Request model whose fields arrive camelCase but may also be passed by name."""
    model_config = ConfigDict(populate_by_name=True)
