# app/api/ai.py
from typing import Any

from fastapi import APIRouter, Depends

from app.api.dependencies import get_classifier, read_json_body
from app.errors import InvalidPayload
from app.services.classifier import Classifier

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.post("")
async def classify_notification(
    payload: Any = Depends(read_json_body),
    classifier: Classifier = Depends(get_classifier),
):
    """
    Clasifica un texto en finance / weather / health / technology.
    Body: {"text": "..."}
    """
    if not isinstance(payload, dict):
        raise InvalidPayload("Request body must be an object with a 'text' field.")
    return await classifier.classify(payload.get("text"))
