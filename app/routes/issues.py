"""
Issue endpoints - submission with similar-issue detection, upvotes, nearby browsing.

Caller identity comes from the X-User-ID header; authenticating it is
handled upstream.
"""

from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status

from app.core.errors import ClientError, NotFoundError, PersistenceError
from app.core.settings import settings
from app.models.issue import (
    IssueRecord,
    PendingSubmission,
    SimilarityMatch,
    ValidationCountResponse,
    ValidationRequest,
)
from app.services.geo_candidates import GeoCandidateFinder, get_geo_candidate_finder
from app.services.store import IssueStore, get_issue_store
from app.services.submission_service import SubmissionCoordinator, get_submission_coordinator
from app.services.upvote_service import UpvoteHandler, get_upvote_handler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/issues", tags=["Issues"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_issue(
    draft: PendingSubmission,
    response: Response,
    user_id: str = Header(..., alias="X-User-ID", description="Reporter ID"),
    coordinator: SubmissionCoordinator = Depends(get_submission_coordinator),
):
    """
    Submit a new issue.

    - No similar issue nearby: the issue is committed (201, IssueRecord)
    - Similar issues nearby: nothing is stored (200) and the response is
      {type: "similar_issues_found", similarIssues, submittedIssue}. Resubmit
      submittedIssue with skipDuplicateCheck=true, or upvote one of the
      similar issues instead.
    """
    try:
        logger.info(f"📝 POST /api/issues - category={draft.category.value}, reporter={user_id}")
        result = await coordinator.submit(draft, user_id)
    except ClientError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except Exception as e:
        logger.error(f"❌ POST /api/issues - Issue submission failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Issue submission failed: {e}",
        )

    if not result.committed or result.replayed:
        response.status_code = status.HTTP_200_OK
    return result.to_response()


@router.post("/similar", response_model=List[SimilarityMatch])
async def find_similar_issues(
    draft: PendingSubmission,
    coordinator: SubmissionCoordinator = Depends(get_submission_coordinator),
):
    """
    Preview similar issues for a draft without submitting it. Read-only.
    """
    try:
        return coordinator.search_similar(draft)
    except ClientError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/near/{lat}/{lng}", response_model=List[IssueRecord])
async def get_nearby_issues(
    lat: float,
    lng: float,
    radius: Optional[float] = Query(None, gt=0, le=50, description="Radius in km (default 5)"),
    finder: GeoCandidateFinder = Depends(get_geo_candidate_finder),
):
    """
    Issues around a point for the map view.
    """
    try:
        return finder.find_records_near(lat, lng, radius or settings.NEARBY_SEARCH_RADIUS_KM)
    except Exception as e:
        logger.error(f"Failed to get nearby issues: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch nearby issues")


@router.get("/{issue_id}", response_model=IssueRecord)
async def get_issue(issue_id: str, store: IssueStore = Depends(get_issue_store)):
    issue = store.get_issue(issue_id)
    if issue is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Issue not found")
    return issue


@router.post("/{issue_id}/upvote", response_model=ValidationCountResponse)
async def upvote_issue(
    issue_id: str,
    user_id: str = Header(..., alias="X-User-ID", description="User ID"),
    handler: UpvoteHandler = Depends(get_upvote_handler),
):
    """
    Upvote an existing issue (chosen instead of submitting a duplicate).
    """
    try:
        result = handler.upvote(issue_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Upvote of issue {issue_id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upvote issue")

    return ValidationCountResponse(
        message="Issue upvoted successfully",
        validation_count=result["validationCount"],
    )


@router.post(
    "/{issue_id}/validate",
    response_model=ValidationCountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def validate_issue(
    issue_id: str,
    validation: ValidationRequest,
    user_id: str = Header(..., alias="X-User-ID", description="User ID"),
    handler: UpvoteHandler = Depends(get_upvote_handler),
):
    """
    Confirm (isValid=true) or dispute (isValid=false) an existing issue.
    """
    try:
        result = handler.validate(issue_id, user_id, validation.is_valid, validation.comment)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Validation of issue {issue_id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to record validation")

    return ValidationCountResponse(
        message="Validation recorded",
        validation_count=result["validationCount"],
    )
