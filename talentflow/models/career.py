"""
Competency framework: career areas (pathways), levels, development themes and
the pathway skills that make up the controlled objective vocabulary.
"""
import uuid
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Text
from sqlalchemy.orm import relationship
from talentflow.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class CareerArea(Base):
    __tablename__ = "career_areas"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=True)
    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)

    themes = relationship("DevelopmentTheme", back_populates="career_area")


class CareerLevel(Base):
    __tablename__ = "career_levels"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String, nullable=False, unique=True)
    short_name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    color = Column(String, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)


class DevelopmentTheme(Base):
    __tablename__ = "development_themes"

    id = Column(String(36), primary_key=True, default=_uuid)
    career_area_id = Column(String(36), ForeignKey("career_areas.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    career_area = relationship("CareerArea", back_populates="themes")
    skills = relationship("PathwaySkill", back_populates="theme")


class PathwaySkill(Base):
    __tablename__ = "pathway_skills"

    id = Column(String(36), primary_key=True, default=_uuid)
    development_theme_id = Column(String(36), ForeignKey("development_themes.id"), nullable=False, index=True)
    career_level_id = Column(String(36), ForeignKey("career_levels.id"), nullable=False, index=True)
    skill_description = Column(Text, nullable=False)
    examples = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)

    theme = relationship("DevelopmentTheme", back_populates="skills")
    level = relationship("CareerLevel")

    @property
    def theme_name(self):
        return self.theme.name if self.theme else None
