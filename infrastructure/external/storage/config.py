"""Storage configuration models."""
from pydantic import BaseModel


class StorageConfig(BaseModel):
    """Storage configuration model."""
    # Local directory holding uploaded objects
    local_base_path: str = "./uploads"
    # Public prefix the directory is served under (StaticFiles mount)
    public_base_url: str = "/uploads"
