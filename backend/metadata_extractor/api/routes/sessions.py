"""Viewer session endpoints: documents, extraction, assets and region selection"""
from fastapi import APIRouter, UploadFile, File, HTTPException, Depends
from fastapi.responses import Response
from typing import List
import logging
from ...models.asset import ExtractedAsset
from ...models.response import (
    SessionResponse,
    UploadResponse,
    UrlRequest,
    ViewportRequest,
    PageState,
    AssetUpdateRequest,
    KeywordRequest,
    PointerDownRequest,
    PointerMoveRequest,
    SelectAssetResponse,
    SelectionSnapshot,
)
from ...services import ViewerSession, SessionManager, PageRenderState
from ...exceptions import MetadataExtractorError
from ...utils.export import EXPORT_FILENAME
from ..dependencies import get_session_manager
from ..errors import to_http_exception

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager)
) -> ViewerSession:
    """Resolve the session named in the path"""
    try:
        return session_manager.get(session_id)
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.post("", response_model=SessionResponse)
async def create_session(session_manager: SessionManager = Depends(get_session_manager)):
    """Open a new, empty viewer session"""
    session = session_manager.create()
    return session.to_response()


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session_state(session: ViewerSession = Depends(get_session)):
    """
    Current session state

    Includes status message and progress, page geometry, the sorted asset
    list, selection state and pending notifications.
    """
    return session.to_response()


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager)
):
    """Close a session, cancelling any work in flight"""
    try:
        session_manager.close(session_id)
        return {"message": "Session closed", "session_id": session_id}
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.post("/{session_id}/document", response_model=UploadResponse)
async def upload_document(
    file: UploadFile = File(...),
    session: ViewerSession = Depends(get_session)
):
    """
    Upload a PDF or Word document and start extraction

    Steps:
    1. Validate file type and size (max 100MB)
    2. Replace the session's document, clearing assets and selection
    3. Start extraction in the background; poll the session for progress
    """
    try:
        logger.info(f"Session {session.session_id} uploading file: {file.filename}")

        # Check size before reading the upload into memory
        file.file.seek(0, 2)
        file_size = file.file.tell()
        file.file.seek(0)
        session.validate_upload(file.filename, file_size, file.content_type)

        content = await file.read()
        document = await session.load(file.filename, content, file.content_type)
        session.start_extraction()

        return UploadResponse(
            session_id=session.session_id,
            filename=document.filename,
            total_pages=document.page_count,
            paginated=document.paginated,
        )

    except MetadataExtractorError as e:
        raise to_http_exception(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error uploading document: {e}")
        raise HTTPException(status_code=500, detail=f"Error processing document: {str(e)}")


@router.post("/{session_id}/url", response_model=UploadResponse)
async def load_document_url(
    request: UrlRequest,
    session: ViewerSession = Depends(get_session)
):
    """Load a public document by URL and start extraction; non-PDF/Word content is read by the model from the URL"""
    try:
        logger.info(f"Session {session.session_id} loading URL: {request.url}")
        document = await session.load_url(request.url)
        session.start_extraction()

        return UploadResponse(
            session_id=session.session_id,
            filename=document.filename,
            total_pages=document.page_count,
            paginated=document.paginated,
        )

    except MetadataExtractorError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error loading document from URL: {e}")
        raise HTTPException(status_code=500, detail=f"Error loading document: {str(e)}")


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_session(session: ViewerSession = Depends(get_session)):
    """Unload the document and return to the input screen"""
    session.reset()
    return session.to_response()


@router.post("/{session_id}/viewport", response_model=List[int])
async def report_viewport(
    request: ViewportRequest,
    session: ViewerSession = Depends(get_session)
):
    """Report the viewer's scroll position; returns pages newly scheduled for rendering"""
    return session.report_viewport(request.scroll_top, request.viewport_height)


@router.get("/{session_id}/pages/{page_index}")
async def get_page(
    page_index: int,
    wait: bool = False,
    session: ViewerSession = Depends(get_session)
):
    """
    Rendered page image (PNG) or its render state

    With wait=true the page is observed if needed and the request waits
    for its render to settle.
    """
    try:
        if wait:
            state, error = await session.wait_for_page(page_index)
        else:
            state, error = session.page_state(page_index)

        if state == PageRenderState.RENDERED:
            image = session.page_image(page_index)
            if image is not None:
                return Response(content=image, media_type="image/png")

        return PageState(page_index=page_index, state=state.value, error=error)

    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.get("/{session_id}/export")
async def export_csv(session: ViewerSession = Depends(get_session)):
    """Download all assets as CSV"""
    csv_text = session.export_csv()
    return Response(
        content=csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.delete("/{session_id}/notifications/{notification_id}")
async def dismiss_notification(
    notification_id: str,
    session: ViewerSession = Depends(get_session)
):
    if not session.dismiss_notification(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"message": "Notification dismissed"}


# --- Assets ---

def _require_asset(session: ViewerSession, asset_id: str) -> ExtractedAsset:
    asset = session.collection.get(asset_id)
    if asset is None:
        raise HTTPException(status_code=404, detail=f"Asset {asset_id} not found")
    return asset


@router.get("/{session_id}/assets/{asset_id}", response_model=ExtractedAsset)
async def get_asset(asset_id: str, session: ViewerSession = Depends(get_session)):
    return _require_asset(session, asset_id)


@router.patch("/{session_id}/assets/{asset_id}", response_model=ExtractedAsset)
async def update_asset(
    asset_id: str,
    request: AssetUpdateRequest,
    session: ViewerSession = Depends(get_session)
):
    """Edit one field of an asset"""
    _require_asset(session, asset_id)
    try:
        return session.update_field(asset_id, request.field, request.value)
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.delete("/{session_id}/assets/{asset_id}")
async def delete_asset(asset_id: str, session: ViewerSession = Depends(get_session)):
    if not session.delete_asset(asset_id):
        raise HTTPException(status_code=404, detail=f"Asset {asset_id} not found")
    return {"message": "Asset removed", "asset_id": asset_id}


@router.post("/{session_id}/assets/{asset_id}/select", response_model=SelectAssetResponse)
async def select_asset(asset_id: str, session: ViewerSession = Depends(get_session)):
    """Highlight an asset and report which page to scroll into view"""
    _require_asset(session, asset_id)
    scroll_to_page = session.select_asset(asset_id)
    return SelectAssetResponse(selected_asset_id=asset_id, scroll_to_page=scroll_to_page)


@router.post("/{session_id}/assets/{asset_id}/keywords", response_model=ExtractedAsset)
async def add_keyword(
    asset_id: str,
    request: KeywordRequest,
    session: ViewerSession = Depends(get_session)
):
    _require_asset(session, asset_id)
    return session.add_keyword(asset_id, request.text)


@router.delete("/{session_id}/assets/{asset_id}/keywords/{index}", response_model=ExtractedAsset)
async def remove_keyword(
    asset_id: str,
    index: int,
    session: ViewerSession = Depends(get_session)
):
    _require_asset(session, asset_id)
    return session.remove_keyword(asset_id, index)


@router.post("/{session_id}/assets/{asset_id}/regenerate")
async def regenerate_asset(asset_id: str, session: ViewerSession = Depends(get_session)):
    """Regenerate an asset's alt text; returns the asset, or null if it was deleted meanwhile"""
    _require_asset(session, asset_id)
    try:
        return await session.regenerate_asset(asset_id)
    except MetadataExtractorError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error regenerating asset: {e}")
        raise HTTPException(status_code=500, detail=f"Error regenerating asset: {str(e)}")


# --- Region selection ---

@router.post("/{session_id}/selection/toggle", response_model=SelectionSnapshot)
async def toggle_selection(session: ViewerSession = Depends(get_session)):
    try:
        session.toggle_selection()
        return session.selection.snapshot()
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.post("/{session_id}/selection/pointer-down", response_model=SelectionSnapshot)
async def selection_pointer_down(
    request: PointerDownRequest,
    session: ViewerSession = Depends(get_session)
):
    try:
        session.pointer_down(request.page_index, request.pointer, request.page_rect)
        return session.selection.snapshot()
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.post("/{session_id}/selection/pointer-move", response_model=SelectionSnapshot)
async def selection_pointer_move(
    request: PointerMoveRequest,
    session: ViewerSession = Depends(get_session)
):
    try:
        session.pointer_move(request.pointer, request.page_rect)
        return session.selection.snapshot()
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.post("/{session_id}/selection/pointer-up", response_model=SelectionSnapshot)
async def selection_pointer_up(session: ViewerSession = Depends(get_session)):
    try:
        session.pointer_up()
        return session.selection.snapshot()
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.post("/{session_id}/selection/cancel", response_model=SelectionSnapshot)
async def selection_cancel(session: ViewerSession = Depends(get_session)):
    try:
        session.cancel_selection()
        return session.selection.snapshot()
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.post("/{session_id}/selection/confirm", response_model=ExtractedAsset)
async def selection_confirm(session: ViewerSession = Depends(get_session)):
    """Generate one asset for the proposed rectangle"""
    try:
        return await session.confirm_selection()
    except MetadataExtractorError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Error generating metadata for selection: {e}")
        raise HTTPException(status_code=500, detail="Could not generate metadata for selection.")
