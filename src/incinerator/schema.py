from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel


class IncineratedSiteDTO(BaseModel):
    tag: int
    path: str
    kind: str
    name: Optional[str] = None
    probed: bool = False


class SkippedFileDTO(BaseModel):
    path: str
    error: str


class IncinerationReportDTO(BaseModel):
    root: str
    files: List[str]
    registered: int
    reports_received: int = 0
    incinerated: List[IncineratedSiteDTO] = []
    pruned: Dict[str, List[str]] = {}
    skipped: List[SkippedFileDTO] = []
