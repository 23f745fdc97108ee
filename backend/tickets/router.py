# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Ticket endpoints.

The role check happens in ``require_auth``; on top of it, a caller without
``tickets:view_all`` only ever sees tickets they created.  Someone else's
ticket answers 404 rather than 403 so ids cannot be probed.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Query, Session

from auth.directory import PublicUser
from core.errors import FORBIDDEN
from core.guards import get_current_user, require_auth
from core.permissions import Permission, can_view_all_tickets, has_permission
from database import get_db
from models.ticket import Ticket
from tickets.schemas import (
    CreateTicketRequest,
    TicketDetailResponse,
    TicketListResponse,
    TicketRow,
)

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


def _visible_tickets(db: Session, user: PublicUser) -> Query:
    q = db.query(Ticket)
    if not can_view_all_tickets(user.role):
        q = q.filter(Ticket.created_by_id == user.id)
    return q


@router.get("", response_model=TicketListResponse)
def list_tickets(
    user: PublicUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not (has_permission(user.role, Permission.TICKETS_VIEW_ALL)
            or has_permission(user.role, Permission.TICKETS_VIEW_OWN)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN)

    rows = _visible_tickets(db, user).order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()
    return TicketListResponse(tickets=[TicketRow.model_validate(t) for t in rows])


@router.post("", response_model=TicketDetailResponse, status_code=status.HTTP_201_CREATED)
def create_ticket(
    body: CreateTicketRequest,
    user: PublicUser = Depends(require_auth(required_permissions=[Permission.TICKETS_CREATE])),
    db: Session = Depends(get_db),
):
    ticket = Ticket(
        title=body.title,
        description=body.description,
        priority=body.priority,
        created_by_id=user.id,
    )
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    return TicketDetailResponse(ticket=TicketRow.model_validate(ticket))


@router.get("/{ticket_id}", response_model=TicketDetailResponse)
def get_ticket(
    ticket_id: int,
    user: PublicUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ticket = _visible_tickets(db, user).filter(Ticket.id == ticket_id).first()
    if ticket is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    return TicketDetailResponse(ticket=TicketRow.model_validate(ticket))


@router.delete("/{ticket_id}")
def delete_ticket(
    ticket_id: int,
    user: PublicUser = Depends(require_auth(required_permissions=[Permission.TICKETS_DELETE])),
    db: Session = Depends(get_db),
):
    ticket = db.get(Ticket, ticket_id)
    if ticket is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    db.delete(ticket)
    db.commit()
    return {"success": True, "message": "Ticket deleted"}
