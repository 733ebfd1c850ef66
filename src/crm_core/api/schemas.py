from pydantic import BaseModel
from typing import Any, Dict, List, Optional

class HistoryEntryOut(BaseModel):
    status: str
    timestamp: float
    ago: str

class DiagnosticsResponse(BaseModel):
    status: str
    details: Dict[str, Any]
    flags: Dict[str, bool]
    history: List[HistoryEntryOut]

class SectionStatusOut(BaseModel):
    section: str
    status: str
    error: Optional[str] = None
