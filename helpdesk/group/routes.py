# helpdesk/group/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from helpdesk.access.policy import Action
from helpdesk.auth.schemas import MessageOut
from helpdesk.core.database import get_db
from helpdesk.core.deps import require
from helpdesk.group import services as group_service
from helpdesk.group.schemas import GroupCreate, GroupDetail, GroupOut, GroupUpdate, MemberAdd

router = APIRouter(prefix="/groups", tags=["Groups"])

can_read = require(Action.GROUP_READ)
can_mutate = require(Action.GROUP_MUTATE)


@router.get("/", response_model=list[GroupOut], dependencies=[Depends(can_read)])
def list_all(db: Session = Depends(get_db)):
    return group_service.get_all_groups(db)


@router.get("/{group_id}", response_model=GroupDetail, dependencies=[Depends(can_read)])
def get(group_id: int, db: Session = Depends(get_db)):
    return group_service.get_group(db, group_id)


@router.post("/", response_model=GroupOut, status_code=201, dependencies=[Depends(can_mutate)])
def create(group: GroupCreate, db: Session = Depends(get_db)):
    return group_service.create_group(db, group)


@router.put("/{group_id}", response_model=GroupOut, dependencies=[Depends(can_mutate)])
def update(group_id: int, group: GroupUpdate, db: Session = Depends(get_db)):
    return group_service.update_group(db, group_id, group)


@router.delete("/{group_id}", response_model=MessageOut, dependencies=[Depends(can_mutate)])
def delete(group_id: int, db: Session = Depends(get_db)):
    group_service.delete_group(db, group_id)
    return MessageOut(message="Group deleted successfully")


@router.post("/{group_id}/members", response_model=GroupDetail, dependencies=[Depends(can_mutate)])
def add_member(group_id: int, payload: MemberAdd, db: Session = Depends(get_db)):
    return group_service.add_member(db, group_id, payload.user_id)


@router.delete("/{group_id}/members/{user_id}", response_model=MessageOut, dependencies=[Depends(can_mutate)])
def remove_member(group_id: int, user_id: int, db: Session = Depends(get_db)):
    group_service.remove_member(db, group_id, user_id)
    return MessageOut(message="User removed from group successfully")
