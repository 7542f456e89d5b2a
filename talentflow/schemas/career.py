from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CareerAreaCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    sort_order: int = 0


class CareerAreaResponse(CareerAreaCreate):
    model_config = ConfigDict(from_attributes=True)
    id: str


class CareerLevelCreate(BaseModel):
    name: str = Field(..., min_length=1)
    short_name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    sort_order: int = 0


class CareerLevelResponse(CareerLevelCreate):
    model_config = ConfigDict(from_attributes=True)
    id: str


class DevelopmentThemeCreate(BaseModel):
    career_area_id: str
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0


class DevelopmentThemeResponse(DevelopmentThemeCreate):
    model_config = ConfigDict(from_attributes=True)
    id: str


class PathwaySkillCreate(BaseModel):
    development_theme_id: str
    career_level_id: str
    skill_description: str = Field(..., min_length=1)
    examples: Optional[str] = None
    requirements: Optional[str] = None


class PathwaySkillResponse(PathwaySkillCreate):
    model_config = ConfigDict(from_attributes=True)
    id: str
    theme_name: Optional[str] = None
