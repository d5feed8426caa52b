# helpdesk/group/services.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from helpdesk.core.errors import Conflict, NotFound, ValidationFailed
from helpdesk.core.logging_config import logger
from helpdesk.group.models import Group, GroupMembership
from helpdesk.group.schemas import GroupCreate, GroupUpdate
from helpdesk.user.models import User


def get_all_groups(db: Session) -> list[Group]:
    return db.query(Group).order_by(Group.name).all()


def get_group(db: Session, group_id: int) -> Group:
    group = db.get(Group, group_id)
    if group is None:
        raise NotFound("Group not found")
    return group


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise Conflict("Group name already exists") from e


def _ensure_name_free(db: Session, name: str, exclude_id: int | None = None) -> None:
    other = db.query(Group).filter(Group.name == name).first()
    if other is not None and other.id != exclude_id:
        raise Conflict("Group name already exists")


def create_group(db: Session, payload: GroupCreate) -> Group:
    _ensure_name_free(db, payload.name)
    group = Group(**payload.model_dump())
    db.add(group)
    _commit(db)
    db.refresh(group)
    logger.info(f"Group created: {group.name}")
    return group


def update_group(db: Session, group_id: int, payload: GroupUpdate) -> Group:
    group = get_group(db, group_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailed("No updates provided")
    if changes.get("name") is not None:
        _ensure_name_free(db, changes["name"], exclude_id=group.id)
    elif "name" in changes:
        raise ValidationFailed("name cannot be null")
    for field, value in changes.items():
        setattr(group, field, value)
    _commit(db)
    db.refresh(group)
    logger.info(f"Group updated: {group.id}")
    return group


def delete_group(db: Session, group_id: int) -> None:
    group = get_group(db, group_id)
    name = group.name
    db.delete(group)
    db.commit()
    logger.info(f"Group deleted: {name}")


def add_member(db: Session, group_id: int, user_id: int) -> Group:
    group = get_group(db, group_id)
    if db.get(User, user_id) is None:
        raise NotFound("User not found")
    if db.get(GroupMembership, (user_id, group_id)) is None:
        db.add(GroupMembership(user_id=user_id, group_id=group_id))
        db.commit()
        logger.info(f"User {user_id} added to group {group_id}")
    db.refresh(group)
    return group


def remove_member(db: Session, group_id: int, user_id: int) -> None:
    get_group(db, group_id)
    db.query(GroupMembership).filter(
        GroupMembership.user_id == user_id,
        GroupMembership.group_id == group_id,
    ).delete()
    db.commit()
    logger.info(f"User {user_id} removed from group {group_id}")
