from typing import Dict, List, Optional

from talentflow.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from talentflow.models.career import CareerArea, CareerLevel, DevelopmentTheme, PathwaySkill
from talentflow.models.user import UserProfile
from talentflow.services.base import BaseService


class CareerService(BaseService):
    """Read access to the competency framework and its write operations."""

    def list_areas(self) -> List[CareerArea]:
        return self.db.query(CareerArea).order_by(CareerArea.sort_order, CareerArea.name).all()

    def list_levels(self) -> List[CareerLevel]:
        return self.db.query(CareerLevel).order_by(CareerLevel.sort_order, CareerLevel.name).all()

    def list_themes(self, career_area_id: Optional[str] = None, include_inactive: bool = False) -> List[DevelopmentTheme]:
        query = self.db.query(DevelopmentTheme)
        if career_area_id:
            query = query.filter(DevelopmentTheme.career_area_id == career_area_id)
        if not include_inactive:
            query = query.filter(DevelopmentTheme.is_active.is_(True))
        return query.order_by(DevelopmentTheme.sort_order, DevelopmentTheme.name).all()

    def list_skills(self, career_area_id: Optional[str] = None, career_level_id: Optional[str] = None,
                    theme_id: Optional[str] = None) -> List[PathwaySkill]:
        query = self.db.query(PathwaySkill).join(DevelopmentTheme)
        if career_area_id:
            query = query.filter(DevelopmentTheme.career_area_id == career_area_id)
        if career_level_id:
            query = query.filter(PathwaySkill.career_level_id == career_level_id)
        if theme_id:
            query = query.filter(PathwaySkill.development_theme_id == theme_id)
        return query.order_by(DevelopmentTheme.sort_order, PathwaySkill.skill_description).all()

    def available_skills(self, career_area_id: Optional[str], career_level_id: Optional[str]) -> List[PathwaySkill]:
        """Skills an objective may reference: the level's skills in the pathway's active themes."""
        if not career_area_id or not career_level_id:
            return []
        return (
            self.db.query(PathwaySkill)
            .join(DevelopmentTheme)
            .filter(
                DevelopmentTheme.career_area_id == career_area_id,
                DevelopmentTheme.is_active.is_(True),
                PathwaySkill.career_level_id == career_level_id,
            )
            .order_by(DevelopmentTheme.sort_order, PathwaySkill.skill_description)
            .all()
        )

    def vocabulary(self, career_area_id: Optional[str], career_level_id: Optional[str]) -> Dict[str, dict]:
        return {
            skill.id: {"skill_description": skill.skill_description, "theme_name": skill.theme.name}
            for skill in self.available_skills(career_area_id, career_level_id)
        }

    def vocabulary_for(self, profile: UserProfile) -> Dict[str, dict]:
        return self.vocabulary(profile.career_pathway_id, profile.career_level_id)

    # --- writes (direction / admin) ---

    def create_area(self, data: dict) -> CareerArea:
        if self.db.query(CareerArea).filter(CareerArea.name == data["name"]).first():
            raise ConflictError(f"Career area '{data['name']}' already exists")
        area = CareerArea(**data)
        self.db.add(area)
        self.db.commit()
        self.db.refresh(area)
        return area

    def create_level(self, data: dict) -> CareerLevel:
        if self.db.query(CareerLevel).filter(CareerLevel.name == data["name"]).first():
            raise ConflictError(f"Career level '{data['name']}' already exists")
        level = CareerLevel(**data)
        self.db.add(level)
        self.db.commit()
        self.db.refresh(level)
        return level

    def create_theme(self, data: dict) -> DevelopmentTheme:
        if not self.db.get(CareerArea, data["career_area_id"]):
            raise NotFoundError("Career area not found")
        theme = DevelopmentTheme(**data)
        self.db.add(theme)
        self.db.commit()
        self.db.refresh(theme)
        return theme

    def create_skill(self, data: dict) -> PathwaySkill:
        if not self.db.get(DevelopmentTheme, data["development_theme_id"]):
            raise NotFoundError("Development theme not found")
        if not self.db.get(CareerLevel, data["career_level_id"]):
            raise ValidationFailedError("Unknown career_level_id")
        skill = PathwaySkill(**data)
        self.db.add(skill)
        self.db.commit()
        self.db.refresh(skill)
        return skill
