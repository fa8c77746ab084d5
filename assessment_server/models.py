"""
Data models for the assessment server

Records are stored and served with camelCase keys (judgeName, actionPlan,
submittedAt) so existing data snapshots load unchanged.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Dict, List, Optional

from assessment_server.utils import round_half_up


RATING_DIMENSIONS = ("complexity", "storytelling", "action_plan", "overall")
MIN_RATING = 1
MAX_RATING = 5

# Per-assessment maximum: 4 dimensions x 5 points
MAX_TOTAL_RATING = len(RATING_DIMENSIONS) * MAX_RATING


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class Member(CamelModel):
    """One team member as listed in an uploaded CSV"""
    name: str
    email: str = ""


class Team(CamelModel):
    """Team record, unique by PIN within its group"""
    id: str
    # Older snapshots stored the name under "teamName"
    name: str = Field(validation_alias=AliasChoices("name", "teamName"))
    group: str = "default"
    pin: str = ""
    members: List[Member] = []
    created_at: str = ""
    source: Optional[str] = None

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class TeamDraft(CamelModel):
    """Validated CSV row, not yet assigned a group or PIN"""
    name: str
    members: List[Member] = []


class Ratings(CamelModel):
    """Four 1-5 ratings, one per assessment dimension"""
    complexity: int = MIN_RATING
    storytelling: int = MIN_RATING
    action_plan: int = MIN_RATING
    overall: int = MIN_RATING

    def total(self) -> int:
        return self.complexity + self.storytelling + self.action_plan + self.overall


class Comments(CamelModel):
    """Free-text judge comments, keyed like Ratings"""
    complexity: str = ""
    storytelling: str = ""
    action_plan: str = ""
    overall: str = ""


class Assessment(CamelModel):
    """One judge's assessment of one team (unique per judge + team)"""
    id: str
    judge_name: str
    team_name: str
    group: str = "default"
    ratings: Ratings = Ratings()
    comments: Comments = Comments()
    submitted_at: str = ""

    def percentage(self) -> float:
        """Single-assessment score as a percentage of the maximum"""
        return round_half_up(self.ratings.total() * 100, MAX_TOTAL_RATING, 1)


class ImportValidation(BaseModel):
    """Outcome of validating parsed CSV rows"""
    errors: List[str] = []
    valid_teams: List[TeamDraft] = []


class TeamStats(CamelModel):
    """Aggregated scores for one team"""
    team_name: str
    judge_count: int
    averages: Dict[str, float]
    total_score: float
    assessments: List[Assessment] = []
