"""
API routes for Storybook

Story reads return the stored text alongside `...Resolved` fields in which
entity placeholders have been replaced with current display names.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Any, Dict, List, Optional
import logging
import time

from src.api.auth import VerifiedUser, require_admin, verify_auth_token
from src.config import get_settings
from src.models import (
    GlobalPromptConfigUpdate,
    ResolveRequest,
    ResolveResponse,
    Story,
    SubstitutionMode,
)
from src.services.config_cache import GlobalPromptConfigService
from src.services.logger import get_logger
from src.services.placeholder_service import PlaceholderService, entity_metadata_for_ids
from src.services.placeholders import extract_identifiers_from_texts, substitute

# Logger for API routes
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["stories"])

# Global services (will be set by main app)
_storage = None
_placeholder_service: PlaceholderService = None
_prompt_config_service: GlobalPromptConfigService = None


def set_storage(storage):
    """Set the global Firestore service instance"""
    global _storage
    _storage = storage


def set_placeholder_service(service: PlaceholderService):
    """Set the global placeholder service instance"""
    global _placeholder_service
    _placeholder_service = service


def set_prompt_config_service(service: GlobalPromptConfigService):
    """Set the global prompt config service instance"""
    global _prompt_config_service
    _prompt_config_service = service


def _require_services():
    if _storage is None or _placeholder_service is None:
        raise HTTPException(status_code=500, detail="Storage not initialized")


async def _get_owned_child(child_id: str, user: VerifiedUser) -> Dict[str, Any]:
    settings = get_settings()
    child = await _storage.get_document(settings.children_collection, child_id)
    if not child or child.get("ownerParentUid") != user.uid:
        raise HTTPException(status_code=403, detail="Forbidden")
    return child


def _story_texts(story: Story) -> List[str]:
    return [story.title, story.synopsis or ""]


def _story_response(story: Story, entity_map, described: bool = False) -> Dict[str, Any]:
    body = story.model_dump(by_alias=True)
    body["titleResolved"] = substitute(story.title, entity_map)
    body["synopsisResolved"] = substitute(story.synopsis or "", entity_map)
    if described:
        body["synopsisDescribed"] = substitute(story.synopsis or "", entity_map, SubstitutionMode.DESCRIPTION)
    body["actors"] = [
        meta.model_dump(by_alias=True)
        for meta in entity_metadata_for_ids(story.actors, entity_map)
    ]
    return body


# ===== Stories =====

@router.get("/stories")
async def list_stories(
    child_id: Optional[str] = Query(default=None, alias="childId"),
    user: VerifiedUser = Depends(verify_auth_token)
):
    """
    Stories for one child of the authenticated parent.

    Each story includes all stored fields plus:
    - titleResolved: title with placeholders replaced
    - synopsisResolved: synopsis with placeholders replaced
    - actors: [{id, displayName, avatarUrl, type}] for story.actors
    """
    if not child_id:
        raise HTTPException(status_code=400, detail="childId is required")
    _require_services()

    try:
        settings = get_settings()
        await _get_owned_child(child_id, user)

        documents = await _storage.query_documents(settings.stories_collection, "childId", child_id)
        stories = [Story.from_document(doc_id, data) for doc_id, data in documents]
        stories = [s for s in stories if not s.is_deleted]
        stories.sort(key=lambda s: s.created_at_seconds(), reverse=True)

        # One resolution pass for every title, synopsis and actor id
        start_time = time.time()
        texts = [text for story in stories for text in _story_texts(story)]
        actor_ids = [actor_id for story in stories for actor_id in story.actors]
        entity_map = await _placeholder_service.resolve_entities_for(texts, actor_ids)

        tokens = set(extract_identifiers_from_texts(texts)) | {a for a in actor_ids if a}
        get_logger().placeholders_resolved(
            context=f"stories of child {child_id[:8]}",
            texts=len(texts),
            tokens=len(tokens),
            resolved=len(entity_map),
            duration=time.time() - start_time
        )

        return [_story_response(story, entity_map) for story in stories]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[GET /api/stories] Error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch stories: {str(e)}")


@router.get("/stories/{story_id}")
async def get_story(story_id: str, user: VerifiedUser = Depends(verify_auth_token)):
    """
    One story with resolved title and synopsis.

    Adds synopsisDescribed, where characters render as
    "[Name, a Type, who likes ...]".
    """
    _require_services()

    try:
        settings = get_settings()
        data = await _storage.get_document(settings.stories_collection, story_id)
        if not data:
            raise HTTPException(status_code=404, detail="Story not found")

        story = Story.from_document(story_id, data)
        if story.is_deleted:
            raise HTTPException(status_code=404, detail="Story not found")

        if story.parent_uid != user.uid:
            if not story.child_id:
                raise HTTPException(status_code=403, detail="Forbidden")
            await _get_owned_child(story.child_id, user)

        entity_map = await _placeholder_service.resolve_entities_for(_story_texts(story), story.actors)
        return _story_response(story, entity_map, described=True)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[GET /api/stories/{story_id}] Error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error fetching story: {str(e)}")


# ===== Placeholder resolution =====

@router.post("/placeholders/resolve", response_model=ResolveResponse, response_model_by_alias=True)
async def resolve_placeholders(request: ResolveRequest, user: VerifiedUser = Depends(verify_auth_token)):
    """
    Resolve placeholders in a batch of texts.

    Order is preserved; null entries come back as null.
    """
    _require_services()
    get_logger().api_request("POST", f"/placeholders/resolve ({len(request.texts)} texts)", user.uid)

    resolved = await _placeholder_service.resolve_and_substitute_batch(request.texts, request.mode)
    return ResolveResponse(resolved_texts=resolved)


# ===== Admin: global prompt config =====

def _require_prompt_config_service() -> GlobalPromptConfigService:
    if _prompt_config_service is None:
        raise HTTPException(status_code=500, detail="Prompt config service not initialized")
    return _prompt_config_service


@router.get("/admin/system-config/prompts")
async def get_prompt_config(user: VerifiedUser = Depends(require_admin)):
    """Current global prompt configuration (defaults when unset)"""
    service = _require_prompt_config_service()
    config = await service.get_config()
    return {"ok": True, "config": config.model_dump(by_alias=True)}


@router.put("/admin/system-config/prompts")
async def update_prompt_config(update: GlobalPromptConfigUpdate, user: VerifiedUser = Depends(require_admin)):
    """Update the global prompt configuration and invalidate the cache"""
    service = _require_prompt_config_service()

    changes = update.model_dump(by_alias=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        config = await service.update_config(changes, updated_by=user.email or user.uid)
    except Exception as e:
        logger.error(f"[PUT /api/admin/system-config/prompts] Error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error updating prompt config: {str(e)}")

    return {"ok": True, "config": config.model_dump(by_alias=True)}


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": get_settings().app_name,
        "storage_initialized": _storage is not None
    }
