from dataclasses import dataclass, field
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional

@dataclass
class RawRow:
    """One decoded sheet row before validation.

    position is the 1-based row number in the sheet, header excluded.
    Empty cells are left out of cells.
    """
    position: int
    cells: Dict[str, Any] = field(default_factory=dict)

class UploadedFile(BaseModel):
    path: str  # absolute path of the staged upload
    filename: str  # name the client sent
    size: int

class Record(BaseModel):
    name: str
    age: int
    email: str

class IngestionResult(BaseModel):
    inserted_count: Optional[int] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error_kind is None

    @classmethod
    def succeeded(cls, inserted_count: int) -> "IngestionResult":
        return cls(inserted_count=inserted_count)

    @classmethod
    def failed(cls, error_kind: str, message: str) -> "IngestionResult":
        return cls(error_kind=error_kind, message=message)

class UploadSuccessResponse(BaseModel):
    message: str
    inserted_count: int = Field(serialization_alias="insertedCount")

class UploadErrorResponse(BaseModel):
    message: str
    error: Optional[str] = None
