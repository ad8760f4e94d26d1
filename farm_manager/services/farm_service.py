from sqlalchemy import or_
from sqlalchemy.orm import Session

from farm_manager.exceptions import NotFoundError, ValidationError
from farm_manager.models.farm import Farm
from farm_manager.models.user import User
from farm_manager.schemas.farm import FarmCreate
from farm_manager.services import auth_service


def accessible_farm_ids(db: Session, user: User) -> set[str] | None:
    """Ids of the farms ``user`` may see, or None when every farm is visible."""
    if user.is_super_admin:
        return None
    rows = (
        db.query(Farm.id)
        .filter(or_(Farm.owner_id == user.id, Farm.members.any(User.id == user.id)))
        .all()
    )
    return {row[0] for row in rows}


def get_farm(db: Session, farm_id: str, user: User) -> Farm:
    farm_ids = accessible_farm_ids(db, user)
    if farm_ids is not None and farm_id not in farm_ids:
        raise NotFoundError("Farm not found")
    farm = db.query(Farm).filter(Farm.id == farm_id).first()
    if not farm:
        raise NotFoundError("Farm not found")
    return farm


def list_farms(db: Session, user: User) -> list[Farm]:
    q = db.query(Farm)
    farm_ids = accessible_farm_ids(db, user)
    if farm_ids is not None:
        q = q.filter(Farm.id.in_(farm_ids))
    return q.order_by(Farm.name).all()


def create_farm(db: Session, data: FarmCreate, user: User) -> Farm:
    if not data.name.strip():
        raise ValidationError("Farm name is required")
    farm = Farm(name=data.name.strip(), location=data.location.strip(), owner_id=user.id)
    db.add(farm)
    db.commit()
    db.refresh(farm)
    return farm


def add_member(db: Session, farm_id: str, member_id: str, user: User) -> Farm:
    farm = get_farm(db, farm_id, user)
    if farm.owner_id != user.id and not auth_service.is_admin(user):
        raise NotFoundError("Farm not found")
    member = auth_service.get_user_by_id(db, member_id)
    if not member:
        raise NotFoundError("User not found")
    if member not in farm.members:
        farm.members.append(member)
        db.commit()
        db.refresh(farm)
    return farm
