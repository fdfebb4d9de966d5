from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from orderdesk.infrastructure.db import get_db
from orderdesk.application.activity import SYSTEM_AUTHOR
from orderdesk.application.errors import OrderNotFound, InvalidStatus
from orderdesk.application.service import OrderService
from orderdesk.application.schemas import (
    OrderRead,
    CommentRead,
    ManualOrderCreate,
    OrderUpdate,
    StatusUpdate,
    CommentCreate,
    ActivityCreate,
    ScanRequest,
)

router = APIRouter(prefix="/orders", tags=["orders"])

def get_author(x_staff_name: Optional[str] = Header(default=None)) -> str:
    """Staff name for audit entries; sessions are handled upstream."""
    return (x_staff_name or "").strip() or SYSTEM_AUTHOR

def _not_found(e: OrderNotFound) -> HTTPException:
    return HTTPException(status_code=404, detail=str(e))

@router.get("/", response_model=list[OrderRead])
def list_orders(status: Optional[list[str]] = Query(default=None), db: Session = Depends(get_db)):
    """Board feed, most recently updated first. Polled by the board every few seconds."""
    return OrderService(db).list_orders(allowed_statuses=status)

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db)):
    try:
        return OrderService(db).get(order_id)
    except OrderNotFound as e:
        raise _not_found(e)

@router.post("/", response_model=OrderRead, status_code=201)
def create_order(payload: ManualOrderCreate, author: str = Depends(get_author), db: Session = Depends(get_db)):
    try:
        return OrderService(db).create_manual_order(payload, author)
    except InvalidStatus as e:
        raise HTTPException(status_code=422, detail=str(e))

@router.put("/{order_id}", response_model=OrderRead)
def update_order(order_id: int, payload: OrderUpdate, author: str = Depends(get_author), db: Session = Depends(get_db)):
    try:
        return OrderService(db).update_details(order_id, payload, author)
    except OrderNotFound as e:
        raise _not_found(e)
    except InvalidStatus as e:
        raise HTTPException(status_code=422, detail=str(e))

@router.put("/{order_id}/status", response_model=OrderRead)
def update_order_status(order_id: int, payload: StatusUpdate, author: str = Depends(get_author), db: Session = Depends(get_db)):
    try:
        return OrderService(db).update_status(order_id, payload.status, author)
    except OrderNotFound as e:
        raise _not_found(e)
    except InvalidStatus as e:
        raise HTTPException(status_code=422, detail=str(e))

@router.post("/scan", response_model=OrderRead)
def scan_barcode(payload: ScanRequest, author: str = Depends(get_author), db: Session = Depends(get_db)):
    """Barcode scanner hit: the matching order moves to the shipped column."""
    try:
        return OrderService(db).scan_barcode(payload.code, author)
    except OrderNotFound as e:
        raise _not_found(e)

@router.post("/{order_id}/comments", response_model=CommentRead, status_code=201)
def add_comment(order_id: int, payload: CommentCreate, author: str = Depends(get_author), db: Session = Depends(get_db)):
    try:
        return OrderService(db).add_comment(order_id, payload, author)
    except OrderNotFound as e:
        raise _not_found(e)

@router.post("/{order_id}/read", response_model=OrderRead)
def mark_order_read(order_id: int, db: Session = Depends(get_db)):
    try:
        return OrderService(db).mark_read(order_id)
    except OrderNotFound as e:
        raise _not_found(e)

@router.post("/{order_id}/activities", status_code=204)
def log_order_activity(order_id: int, payload: ActivityCreate, author: str = Depends(get_author), db: Session = Depends(get_db)):
    """Client-side events such as printing or PDF export."""
    try:
        OrderService(db).log_manual_activity(order_id, payload.action, payload.details, author)
    except OrderNotFound as e:
        raise _not_found(e)
    return None
