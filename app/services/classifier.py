# app/services/classifier.py
import logging
import os
from typing import Any, Dict

from app.errors import InvalidPayload

logger = logging.getLogger(__name__)

AI_MODEL_ID = os.getenv("AI_MODEL_ID", "@cf/meta/llama-3.1-8b-instruct")

CATEGORIES = ("finance", "weather", "health", "technology")

PROMPT_TEMPLATE = (
    "Classify the given notification text into one of these categories: "
    "{categories}. The text will clearly belong to one of these categories. "
    "Respond with only the category name in lowercase."
    '\n\nNotification text: "{text}"'
)


def build_prompt(text: str) -> str:
    # "finance, weather, health, or technology"
    categories = ", ".join(CATEGORIES[:-1]) + f", or {CATEGORIES[-1]}"
    return PROMPT_TEMPLATE.format(categories=categories, text=text)


class Classifier:
    """
    Reenvía texto libre al modelo de texto y devuelve su respuesta tal cual.
    La etiqueta NO se valida contra CATEGORIES: lo que diga el modelo es lo
    que recibe el cliente.
    """

    def __init__(self, ai_client, model_id: str = AI_MODEL_ID):
        self.ai_client = ai_client
        self.model_id = model_id

    async def classify(self, text: Any) -> Dict[str, Any]:
        if not isinstance(text, str):
            raise InvalidPayload("Notification text must be a string.")

        logger.debug("[ai] Clasificando: %r", text)
        result = await self.ai_client.run(self.model_id, {"prompt": build_prompt(text)})
        category = result.get("response")
        logger.info("[ai] Categoría recibida: %r", category)
        return {"category": category}
