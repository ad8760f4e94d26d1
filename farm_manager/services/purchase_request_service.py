import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from farm_manager.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from farm_manager.models.purchase_request import PurchaseRequest, PurchaseRequestStatus
from farm_manager.models.user import User
from farm_manager.schemas.purchase_request import PurchaseRequestCreate, PurchaseRequestUpdate
from farm_manager.services import farm_service

logger = logging.getLogger(__name__)

# target status -> statuses it may be reached from
ALLOWED_TRANSITIONS = {
    PurchaseRequestStatus.EM_ANDAMENTO: {PurchaseRequestStatus.NOVA, PurchaseRequestStatus.EM_ANDAMENTO},
    PurchaseRequestStatus.FINALIZADA: {PurchaseRequestStatus.NOVA, PurchaseRequestStatus.EM_ANDAMENTO},
}

REQUIRED_TEXT_FIELDS = ("produto", "quantidade", "responsavel")
EDITABLE_FIELDS = ("produto", "quantidade", "responsavel", "data", "urgente", "observacao")


def _check_transition(pr: PurchaseRequest, target: PurchaseRequestStatus) -> None:
    current = PurchaseRequestStatus(pr.status)
    if current not in ALLOWED_TRANSITIONS[target]:
        raise InvalidTransitionError(
            f"Cannot move purchase request from '{current.value}' to '{target.value}'"
        )


def _apply_fields(pr: PurchaseRequest, fields: dict) -> None:
    for field, value in fields.items():
        if field not in EDITABLE_FIELDS:
            continue
        if field in REQUIRED_TEXT_FIELDS:
            if value is None or not value.strip():
                raise ValidationError(f"{field} cannot be blank")
            value = value.strip()
        elif field == "data" and value is None:
            raise ValidationError("data cannot be empty")
        elif field == "urgente" and value is None:
            continue
        elif field == "observacao" and value is not None:
            value = value.strip() or None
        setattr(pr, field, value)


def _to_in_progress(pr: PurchaseRequest, andamento: str | None) -> None:
    _check_transition(pr, PurchaseRequestStatus.EM_ANDAMENTO)
    if not andamento or not andamento.strip():
        raise ValidationError("andamento is required to mark a request in progress")
    pr.status = PurchaseRequestStatus.EM_ANDAMENTO
    pr.andamento = andamento.strip()


def _to_finalized(pr: PurchaseRequest, finalizado_por: str | None) -> None:
    _check_transition(pr, PurchaseRequestStatus.FINALIZADA)
    if not finalizado_por or not finalizado_por.strip():
        raise ValidationError("finalizadoPor is required to finalize a request")
    pr.status = PurchaseRequestStatus.FINALIZADA
    pr.finalizado_por = finalizado_por.strip()


def _commit(db: Session, pr: PurchaseRequest, mutate) -> PurchaseRequest:
    try:
        mutate(pr)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(pr)
    return pr


def create_purchase_request(
    db: Session, farm_id: str, data: PurchaseRequestCreate, user: User
) -> PurchaseRequest:
    farm = farm_service.get_farm(db, farm_id, user)
    if data.farm_id and data.farm_id != farm.id:
        raise ValidationError("farmId in body does not match the farm in the path")
    pr = PurchaseRequest(
        farm_id=farm.id,
        status=PurchaseRequestStatus.NOVA,
        created_by=user.id,
        urgente=data.urgente,
    )
    _apply_fields(pr, data.model_dump(include=set(EDITABLE_FIELDS)))
    db.add(pr)
    db.commit()
    db.refresh(pr)
    logger.info("Purchase request %s created on farm %s by %s", pr.id, farm.id, user.username)
    return pr


def get_purchase_request(db: Session, request_id: str, user: User) -> PurchaseRequest:
    q = db.query(PurchaseRequest).filter(PurchaseRequest.id == request_id)
    farm_ids = farm_service.accessible_farm_ids(db, user)
    if farm_ids is not None:
        q = q.filter(PurchaseRequest.farm_id.in_(farm_ids))
    pr = q.first()
    if not pr:
        raise NotFoundError("Purchase request not found")
    return pr


def list_purchase_requests(
    db: Session,
    farm_id: str,
    user: User,
    status: str | None = None,
    urgente: bool | None = None,
    search: str | None = None,
) -> list[PurchaseRequest]:
    farm_service.get_farm(db, farm_id, user)
    q = db.query(PurchaseRequest).filter(PurchaseRequest.farm_id == farm_id)
    if status and status != "all":
        try:
            q = q.filter(PurchaseRequest.status == PurchaseRequestStatus(status))
        except ValueError:
            raise ValidationError(f"Unknown status '{status}'")
    if urgente:
        q = q.filter(PurchaseRequest.urgente == True)  # noqa: E712
    term = (search or "").strip()
    if term:
        q = q.filter(
            or_(
                PurchaseRequest.produto.icontains(term, autoescape=True),
                PurchaseRequest.responsavel.icontains(term, autoescape=True),
            )
        )
    return q.order_by(PurchaseRequest.created_at.desc(), PurchaseRequest.data.desc()).all()


def update_purchase_request(
    db: Session, request_id: str, data: PurchaseRequestUpdate, user: User
) -> PurchaseRequest:
    """Edit the descriptive fields; status and narrative fields are left alone."""
    pr = get_purchase_request(db, request_id, user)
    fields = data.model_dump(exclude_unset=True, include=set(EDITABLE_FIELDS))
    return _commit(db, pr, lambda p: _apply_fields(p, fields))


def mark_in_progress(db: Session, request_id: str, andamento: str, user: User) -> PurchaseRequest:
    pr = get_purchase_request(db, request_id, user)
    pr = _commit(db, pr, lambda p: _to_in_progress(p, andamento))
    logger.info("Purchase request %s in progress (%s)", pr.id, user.username)
    return pr


def finalize(db: Session, request_id: str, finalizado_por: str, user: User) -> PurchaseRequest:
    pr = get_purchase_request(db, request_id, user)
    pr = _commit(db, pr, lambda p: _to_finalized(p, finalizado_por))
    logger.info("Purchase request %s finalized by %s", pr.id, pr.finalizado_por)
    return pr


def apply_patch(db: Session, request_id: str, data: PurchaseRequestUpdate, user: User) -> PurchaseRequest:
    """Handle a generic PATCH body: plain edits plus an optional status change.

    The status change goes through the same transition checks as
    ``mark_in_progress`` and ``finalize``; nothing is saved if any part fails.
    """
    pr = get_purchase_request(db, request_id, user)
    fields = data.model_dump(exclude_unset=True)
    status = fields.pop("status", None)
    andamento = fields.pop("andamento", None)
    finalizado_por = fields.pop("finalizado_por", None)

    def mutate(p: PurchaseRequest) -> None:
        _apply_fields(p, fields)
        if status is None:
            if andamento is not None or finalizado_por is not None:
                raise ValidationError("andamento and finalizadoPor can only be set with a status change")
        elif status == PurchaseRequestStatus.NOVA:
            if andamento is not None or finalizado_por is not None:
                raise ValidationError("andamento and finalizadoPor cannot be set on a NOVA request")
            current = PurchaseRequestStatus(p.status)
            if current != PurchaseRequestStatus.NOVA:
                raise InvalidTransitionError(f"Cannot move purchase request from '{current.value}' back to 'NOVA'")
        elif status == PurchaseRequestStatus.EM_ANDAMENTO:
            if finalizado_por is not None:
                raise ValidationError("finalizadoPor can only be set when finalizing")
            _to_in_progress(p, andamento)
        else:
            if andamento is not None:
                raise ValidationError("andamento can only be set when moving to EM_ANDAMENTO")
            _to_finalized(p, finalizado_por)

    pr = _commit(db, pr, mutate)
    if status is not None:
        logger.info("Purchase request %s patched to %s", pr.id, PurchaseRequestStatus(pr.status).value)
    return pr


def delete_purchase_request(db: Session, request_id: str, user: User) -> None:
    pr = get_purchase_request(db, request_id, user)
    db.delete(pr)
    db.commit()
    logger.info("Purchase request %s deleted by %s", request_id, user.username)
