"""
Pydantic request/response models for the API.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


# ============== Sources ==============

class SourceUrlRequest(BaseModel):
    """Empty string clears the source."""
    url: str = ""


class RefreshRequest(BaseModel):
    force: bool = False


class RefreshIntervalRequest(BaseModel):
    """Seconds between automatic refreshes, 0 disables them."""
    seconds: int = Field(ge=0)


# ============== Sheets ==============

class DisplayNameRequest(BaseModel):
    """None or empty string resets to the sheet's own name."""
    sheet_name: str
    display_name: Optional[str] = None


class SheetOrderRequest(BaseModel):
    sheet_names: List[str]


class MoveSheetRequest(BaseModel):
    sheet_name: str
    position: int = Field(ge=0)


# ============== Settings ==============

class StorageCapacityRequest(BaseModel):
    capacity: float = Field(ge=0)
    unit: str = Field(default="TB", pattern="^(TB|GB)$")


# ============== Responses ==============

class FileRecordResponse(BaseModel):
    id: str
    name: str
    location: str
    created_label: Optional[str] = None
    size_label: Optional[str] = None
    description: Optional[str] = None


class SheetSummaryResponse(BaseModel):
    """One sidebar entry."""
    sheet_name: str
    display_name: str
    file_count: int


class SheetResultsResponse(BaseModel):
    sheet_name: str
    display_name: str
    files: List[FileRecordResponse]


class ResultsResponse(BaseModel):
    """Records for the current view mode, with their combined size."""
    mode: str
    query: Optional[str] = None
    total_files: int
    total_size: float
    size_unit: str
    results: List[SheetResultsResponse]


class ChangeEventResponse(BaseModel):
    id: str
    key: str
    kind: str
    sheet_name: str
    timestamp: str
    details: str


class ChangeListResponse(BaseModel):
    changes: List[ChangeEventResponse]
    count: int
