from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class FilterStateModel(BaseModel):
    min_day: Optional[int] = None
    max_day: Optional[int] = None
    metric: Optional[str] = None


class MetaRegionsResponse(BaseModel):
    regions: List[str]


class MetaRangeResponse(BaseModel):
    year: int
    min_day: int
    max_day: int
    label: str
