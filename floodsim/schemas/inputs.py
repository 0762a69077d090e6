# floodsim/schemas/inputs.py
import math
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from floodsim.schemas.contracts import BuildingDesign


class BuildingDesignInput(BaseModel):
    """Request payload at the UI/CLI boundary. Accepts camelCase or snake_case keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    foundation_type: str = Field(alias="foundationType", min_length=1)
    elevation_height: float = Field(alias="elevationHeight")
    materials: List[str] = Field(min_length=1)
    mitigation_features: List[str] = Field(alias="floodMitigationFeatures", min_length=1)

    @field_validator("foundation_type")
    @classmethod
    def _foundation_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Foundation type is required and must be a non-empty string.")
        return v

    @field_validator("elevation_height")
    @classmethod
    def _finite_elevation(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Elevation height must be a finite number.")
        return v

    @field_validator("materials", "mitigation_features")
    @classmethod
    def _non_blank_items(cls, v: List[str]) -> List[str]:
        cleaned = [s.strip() for s in v if isinstance(s, str) and s.strip()]
        if not cleaned:
            raise ValueError("must contain at least one non-empty entry")
        return cleaned

    def to_design(self) -> BuildingDesign:
        return BuildingDesign(
            foundation_type=self.foundation_type,
            elevation_height=float(self.elevation_height),
            materials=tuple(self.materials),
            mitigation_features=tuple(self.mitigation_features),
        )
