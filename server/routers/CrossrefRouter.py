from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import CrossrefRequest
from server.models.responses import CrossrefResponse
from services.annotation_crossref.CrossrefService import CrossrefService

router = APIRouter(prefix="/crossref", tags=["crossref"])


@router.post("")
async def crossref_items(
    request: Request,
    body: CrossrefRequest,
    _: None = Depends(verify_api_key),
) -> CrossrefResponse:
    """Cross-reference the annotation keys of the given library items against a search profile.

    A search client is created per request because the profile can differ between requests.

    Args:
        request (Request): FastAPI request (provides app.state.library_client and app.state.search_manager).
        body (CrossrefRequest): JSON body with item ids, optional profile and the tagging switch.
        _ (None): Auth dependency result (unused).

    Returns:
        CrossrefResponse: The report and run statistics.
    """
    request.app.state.logging.info("Cross-reference requested for %d item(s), profile=%r", len(body.item_ids), body.profile)

    search_client = request.app.state.search_manager.get_client(profile_override=body.profile)
    async with search_client:
        service = CrossrefService(
            helper_config=request.app.state.helper_config,
            library_client=request.app.state.library_client,
            search_client=search_client,
            apply_tags=body.apply_tags,
        )
        # the shared library client holds one transaction at a time
        async with request.app.state.crossref_lock:
            result = await service.do_run(body.item_ids)

    return CrossrefResponse(**result.model_dump())
