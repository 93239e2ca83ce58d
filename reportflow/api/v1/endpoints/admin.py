# reportflow/api/v1/endpoints/admin.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List

from reportflow.db import models, session
from reportflow.core import security
from reportflow.core.enums import AuditAction
from reportflow.dependencies import get_audit_trail
from reportflow.schemas import audit as audit_schema
from reportflow.schemas import supervisor as supervisor_schema
from reportflow.schemas import user as user_schema
from reportflow.services.audit import AuditTrail, snapshot
from reportflow.services.supervisor_directory import SupervisorDirectory

router = APIRouter()

# --- Employees ---

@router.post("/users", response_model=user_schema.User, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: user_schema.UserCreate,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Creates a new employee account. """
    if db.query(models.Employee).filter(func.lower(models.Employee.email) == user_in.email.lower()).first():
        raise HTTPException(status_code=409, detail="Email already registered")

    db_user = models.Employee(
        email=user_in.email, full_name=user_in.full_name, title=user_in.title,
        phone=user_in.phone, role=user_in.role,
        hashed_password=security.get_password_hash(user_in.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user

@router.get("/users", response_model=List[user_schema.User])
def get_all_users(
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Retrieves a list of all employees. """
    return db.query(models.Employee).order_by(models.Employee.id).all()

@router.put("/users/{user_id}", response_model=user_schema.User)
def update_user_details(
    user_id: int,
    updates: user_schema.UserUpdate,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Updates an employee's role, title, name or phone. """
    db_user = db.get(models.Employee, user_id)
    if not db_user:
        raise HTTPException(status_code=404, detail="User not found")

    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(db_user, field, value)

    db.commit()
    db.refresh(db_user)
    return db_user

# --- Supervisor relations ---

@router.get("/supervisors", response_model=List[supervisor_schema.Relation])
def list_relations(
    employee_id: int | None = None,
    db: Session = Depends(session.get_db),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Lists supervisor relations, newest first, optionally for one employee. """
    query = db.query(models.SupervisorRelation)
    if employee_id is not None:
        query = query.filter(models.SupervisorRelation.employee_id == employee_id)
    return query.order_by(models.SupervisorRelation.created_at.desc(), models.SupervisorRelation.id.desc()).all()

@router.post("/supervisors", response_model=supervisor_schema.Relation, status_code=status.HTTP_201_CREATED)
def create_relation(
    relation_in: supervisor_schema.RelationCreate,
    db: Session = Depends(session.get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Links an employee to a supervisor; refuses a second active link for the same pair. """
    directory = SupervisorDirectory(db)
    if relation_in.is_active and directory.has_duplicate_active(relation_in.employee_id, relation_in.supervisor_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An active relation for this pair already exists")

    relation = directory.create(relation_in.model_dump())
    db.commit()
    db.refresh(relation)
    audit.record(admin.id, AuditAction.CREATE, "SupervisorRelation", detail=f"Created supervisor relation {relation.id}", after=snapshot(relation))
    return relation

@router.put("/supervisors/{relation_id}", response_model=supervisor_schema.Relation)
def update_relation(
    relation_id: int,
    updates: supervisor_schema.RelationUpdate,
    db: Session = Depends(session.get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Changes a relation's window, kind or active flag. """
    directory = SupervisorDirectory(db)
    relation = directory.get(relation_id)
    changes = updates.model_dump(exclude_unset=True)
    directory.check_changes(changes)
    before = snapshot(relation)

    employee_id = changes.get("employee_id", relation.employee_id)
    supervisor_id = changes.get("supervisor_id", relation.supervisor_id)
    is_active = changes.get("is_active", relation.is_active)
    if is_active and directory.has_duplicate_active(employee_id, supervisor_id, excluding_relation_id=relation_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An active relation for this pair already exists")

    relation = directory.update(relation_id, changes)
    db.commit()
    db.refresh(relation)
    audit.record(admin.id, AuditAction.UPDATE, "SupervisorRelation", detail=f"Updated supervisor relation {relation.id}", before=before, after=snapshot(relation))
    return relation

@router.delete("/supervisors/{relation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_relation(
    relation_id: int,
    db: Session = Depends(session.get_db),
    audit: AuditTrail = Depends(get_audit_trail),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Removes a relation outright. Prefer deactivating to keep history. """
    directory = SupervisorDirectory(db)
    before = snapshot(directory.get(relation_id))
    directory.delete(relation_id)
    db.commit()
    audit.record(admin.id, AuditAction.DELETE, "SupervisorRelation", detail=f"Deleted supervisor relation {relation_id}", before=before)
    return

# --- Activity log ---

@router.get("/logs", response_model=List[audit_schema.ActivityLog])
def list_activity_logs(
    module: str | None = None,
    action: AuditAction | None = None,
    employee_id: int | None = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    audit: AuditTrail = Depends(get_audit_trail),
    admin: models.Employee = Depends(security.get_current_admin_user)
):
    """ Lists recorded changes, newest first. """
    return audit.entries(
        module=module, action=action.value if action else None,
        employee_id=employee_id, limit=limit, offset=offset,
    )
