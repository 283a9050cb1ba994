"""Browser session status endpoint."""
from fastapi import APIRouter, Depends

from ..dependencies import get_browser_session
from ..models import StatusResponse
from ..services import BrowserSession

router = APIRouter(prefix="/api", tags=["status"])


@router.get(
    "/status",
    response_model=StatusResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def get_status(
    session: BrowserSession = Depends(get_browser_session),
) -> StatusResponse:
    """Report whether the browser session is up and past the challenge."""
    snapshot = await session.status()
    return StatusResponse(**snapshot)
