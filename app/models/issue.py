"""
Pydantic models for civic issues and the similar-issue submission flow.

Field names are snake_case in Python; the JSON surface uses the camelCase
aliases the web client already speaks (imageUrl, validationCount, ...).
Both spellings are accepted on input.
"""

from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional, List, Literal
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IssueCategory(str, Enum):
    """Issue type assigned by the reporter (or the upstream image classifier)."""
    POTHOLE = "pothole"
    LIGHTING = "lighting"
    GARBAGE = "garbage"
    SIGNAGE = "signage"
    GRAFFITI = "graffiti"
    FLOODING = "flooding"
    OTHER = "other"


class IssueStatus(str, Enum):
    SUBMITTED = "submitted"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class IssuePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PendingSubmission(BaseModel):
    """
    Draft of a new issue (incoming POST request).

    Held only for the duration of one request. When similar issues are found
    it is echoed back to the caller, who resubmits it verbatim with
    skipDuplicateCheck=true or upvotes an existing issue instead.
    """
    title: str = Field(..., min_length=1, max_length=200, description="Short summary of the problem")
    description: Optional[str] = Field(None, max_length=2000, description="What the citizen observed")
    category: IssueCategory = Field(..., description="Issue type")
    priority: IssuePriority = Field(default=IssuePriority.MEDIUM)
    # Optional at the schema level so a missing coordinate is reported as a
    # client error by the coordinator rather than a generic 422.
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500, description="Free-text address")
    image_url: Optional[str] = Field(None, alias="imageUrl", description="Reference to the uploaded photo")
    skip_duplicate_check: bool = Field(
        default=False,
        alias="skipDuplicateCheck",
        description="Caller has seen similar issues and chose to submit anyway",
    )
    submission_id: Optional[str] = Field(
        None,
        alias="submissionId",
        max_length=128,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="Client-generated idempotency key for the commit",
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "title": "Deep pothole near bus stop",
                "description": "Two-wheelers swerving around it",
                "category": "pothole",
                "latitude": 12.9,
                "longitude": 74.8,
                "address": "Bailpar District Dandeli",
                "imageUrl": "https://example.com/photo.jpg",
            }
        }


class IssueRecord(BaseModel):
    """A committed issue as stored and returned by the API."""
    id: str
    title: str
    description: Optional[str] = None
    category: IssueCategory
    priority: IssuePriority = IssuePriority.MEDIUM
    status: IssueStatus = IssueStatus.SUBMITTED
    latitude: float
    longitude: float
    address: Optional[str] = None
    normalized_location: str = Field(default="", alias="normalizedLocation")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    reporter_id: str = Field(..., alias="reporterId")
    validation_count: int = Field(default=0, ge=0, alias="validationCount")
    comment_count: int = Field(default=0, ge=0, alias="commentCount")
    submission_id: Optional[str] = Field(None, alias="submissionId")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    class Config:
        populate_by_name = True

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)


class CandidateIssue(BaseModel):
    """Read-only projection of an IssueRecord inside a search window."""
    id: str
    title: str
    description: str = ""
    category: IssueCategory
    status: IssueStatus
    latitude: float
    longitude: float
    normalized_location: str = ""
    reporter_id: str
    created_at: datetime
    validation_count: int = 0
    has_image: bool = False

    @classmethod
    def from_record(cls, record: IssueRecord) -> "CandidateIssue":
        return cls(
            id=record.id,
            title=record.title,
            description=record.description or "",
            category=record.category,
            status=record.status,
            latitude=record.latitude,
            longitude=record.longitude,
            normalized_location=record.normalized_location,
            reporter_id=record.reporter_id,
            created_at=record.created_at,
            validation_count=record.validation_count,
            has_image=record.has_image,
        )


class SimilarityQuery(BaseModel):
    """The ranker's view of the new issue."""
    title: str
    description: str = ""
    category: IssueCategory
    normalized_location: str = ""
    has_image: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class SimilarityMatch(BaseModel):
    """A candidate judged likely to describe the same physical problem."""
    id: str
    title: str
    description: str = ""
    similarity: float = Field(..., ge=0.0, le=1.0)
    reasons: List[str] = Field(default_factory=list)
    reported_by: str = Field(..., alias="reportedBy")
    created_at: datetime = Field(..., alias="createdAt")
    validation_count: int = Field(default=0, alias="validationCount")
    status: IssueStatus

    class Config:
        populate_by_name = True


class SimilarIssuesResponse(BaseModel):
    """Returned instead of a commit when the caller must decide."""
    type: Literal["similar_issues_found"] = "similar_issues_found"
    message: str = "Similar issues found in your area"
    similar_issues: List[SimilarityMatch] = Field(..., alias="similarIssues")
    submitted_issue: PendingSubmission = Field(..., alias="submittedIssue")
    can_proceed_anyway: bool = Field(default=True, alias="canProceedAnyway")

    class Config:
        populate_by_name = True


class ValidationRequest(BaseModel):
    is_valid: bool = Field(..., alias="isValid")
    comment: Optional[str] = Field(None, max_length=1000)

    class Config:
        populate_by_name = True


class ValidationCountResponse(BaseModel):
    message: str
    validation_count: int = Field(..., alias="validationCount")

    class Config:
        populate_by_name = True
