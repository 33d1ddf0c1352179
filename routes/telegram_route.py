"""FastAPI route receiving Telegram webhook updates."""

from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Request

from controllers.update_controller import receive_webhook

router = APIRouter(prefix="/telegram", tags=["telegram"])


@router.post("/webhook")
async def telegram_webhook_route(request: Request, payload: Dict[str, Any] = Body(...)):
	try:
		return await receive_webhook(request, payload)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
