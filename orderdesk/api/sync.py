from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from orderdesk.infrastructure.db import get_db
from orderdesk.application.pull_sync import PullSyncer, ERROR_CONFIGURATION
from orderdesk.application.schemas import SyncResponse
from orderdesk.application.status_mapper import SOURCE_WOOCOMMERCE, SOURCE_ETSY

router = APIRouter(prefix="/sync", tags=["sync"])

def _run(source: str, db: Session):
    result = PullSyncer(db).sync(source)
    if result.success:
        return result.as_response()
    status_code = 400 if result.error_kind == ERROR_CONFIGURATION else 502
    return JSONResponse(status_code=status_code, content=result.as_response())

@router.post("/{source}", response_model=SyncResponse)
def sync_source(source: str, db: Session = Depends(get_db)):
    """Admin-triggered pull of the recent order window from a marketplace."""
    if source not in (SOURCE_WOOCOMMERCE, SOURCE_ETSY):
        raise HTTPException(status_code=404, detail=f"Unknown source '{source}'")
    return _run(source, db)
