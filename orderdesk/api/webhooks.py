from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from orderdesk.infrastructure.db import get_db
from orderdesk.application.webhook import WebhookIngester, CargoWebhookIngester

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

async def _raw_body(request: Request) -> str:
    # Pings arrive form-encoded, orders as JSON; both are read as text
    return (await request.body()).decode("utf-8", errors="replace")

@router.post("/woocommerce")
async def woocommerce_webhook(request: Request, db: Session = Depends(get_db)):
    outcome = await run_in_threadpool(WebhookIngester(db).handle, await _raw_body(request))
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)

@router.post("/cargo")
async def cargo_webhook(request: Request, db: Session = Depends(get_db)):
    outcome = await run_in_threadpool(CargoWebhookIngester(db).handle, await _raw_body(request))
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
