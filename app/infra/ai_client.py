# app/infra/ai_client.py
import logging
import os
from typing import Any, Dict, Optional

import httpx

from app.errors import ClassifierUnavailable

logger = logging.getLogger(__name__)

# ====== env ======
AI_BASE_URL = os.getenv("AI_BASE_URL", "https://api.cloudflare.com/client/v4")
AI_ACCOUNT_ID = os.getenv("AI_ACCOUNT_ID")
AI_API_TOKEN = os.getenv("AI_API_TOKEN")
AI_TIMEOUT = float(os.getenv("AI_TIMEOUT", "30"))


class WorkersAIClient:
    """
    Cliente HTTP de Cloudflare Workers AI.
      POST {base_url}/accounts/{account_id}/ai/run/{model_id}
    La API responde {"success": true, "result": {"response": "..."}};
    run() devuelve solo el "result".
    """

    def __init__(
        self,
        account_id: Optional[str] = AI_ACCOUNT_ID,
        api_token: Optional[str] = AI_API_TOKEN,
        base_url: str = AI_BASE_URL,
        timeout: float = AI_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_id = account_id
        self.api_token = api_token
        self._http_client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def run(self, model_id: str, inputs: Dict[str, Any]) -> Dict[str, Any]:
        if not self.account_id or not self.api_token:
            raise ClassifierUnavailable("AI_ACCOUNT_ID / AI_API_TOKEN not configured")

        url = f"/accounts/{self.account_id}/ai/run/{model_id}"
        try:
            response = await self._http_client.post(
                url,
                json=inputs,
                headers={"Authorization": f"Bearer {self.api_token}"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.error("[ai] ❗ Error llamando a %s: %s", model_id, e)
            raise ClassifierUnavailable(f"AI model '{model_id}' request failed") from e
        except ValueError as e:
            # body que no es JSON
            raise ClassifierUnavailable(f"AI model '{model_id}' returned invalid JSON") from e

        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, dict):
            raise ClassifierUnavailable(f"AI model '{model_id}' returned no result")
        return result

    async def close(self) -> None:
        await self._http_client.aclose()
