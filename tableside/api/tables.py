from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from tableside.api.deps import admin_only, staff_or_admin
from tableside.core.database import get_db
from tableside.core.errors import NotFound, ValidationError
from tableside.models.schemas import TableCreate, TableOut, TableUpdate, to_wire
from tableside.models.table import Table
from tableside.services import order_store
from tableside.services.sessions import SessionContext

router = APIRouter()


def _get_table(db: Session, tenant: str, table_id: int) -> Table:
    table = db.query(Table).filter(Table.id == table_id, Table.restaurant_id == tenant).first()
    if not table:
        raise NotFound("Table not found")
    return table

def _number_taken(db: Session, tenant: str, number: int, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Table).filter(Table.restaurant_id == tenant, Table.number == number)
    if exclude_id is not None:
        query = query.filter(Table.id != exclude_id)
    return query.first() is not None

@router.get("/{tenant}/admin/tables")
def list_tables(tenant: str, session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    tables = db.query(Table).filter(Table.restaurant_id == tenant).order_by(Table.number).all()
    return {
        "tables": [to_wire(TableOut, t) for t in tables],
        "occupied": sum(1 for t in tables if t.is_occupied),
    }

@router.post("/{tenant}/admin/tables")
def create_table(tenant: str, data: TableCreate, session: SessionContext = Depends(admin_only),
                 db: Session = Depends(get_db)):
    order_store.require_restaurant(db, tenant)
    if _number_taken(db, tenant, data.number):
        raise ValidationError(f"Table {data.number} already exists")
    table = Table(restaurant_id=tenant, is_occupied=False, **data.model_dump())
    db.add(table)
    db.commit()
    db.refresh(table)
    return {"success": True, "table": to_wire(TableOut, table)}

@router.put("/{tenant}/admin/tables/{table_id}")
def update_table(tenant: str, table_id: int, changes: TableUpdate, session: SessionContext = Depends(admin_only),
                 db: Session = Depends(get_db)):
    table = _get_table(db, tenant, table_id)
    data = changes.model_dump(exclude_unset=True)
    if data.get("number") is not None and _number_taken(db, tenant, data["number"], exclude_id=table.id):
        raise ValidationError(f"Table {data['number']} already exists")
    for name, value in data.items():
        if value is not None:
            setattr(table, name, value)
    db.commit()
    db.refresh(table)
    return {"success": True, "table": to_wire(TableOut, table)}

@router.delete("/{tenant}/admin/tables/{table_id}")
def delete_table(tenant: str, table_id: int, session: SessionContext = Depends(admin_only),
                 db: Session = Depends(get_db)):
    table = _get_table(db, tenant, table_id)
    db.delete(table)
    db.commit()
    return {"success": True, "message": "Table deleted successfully"}

@router.post("/{tenant}/staff/tables/{table_id}/occupancy")
def toggle_occupancy(tenant: str, table_id: int, session: SessionContext = Depends(staff_or_admin),
                     db: Session = Depends(get_db)):
    table = _get_table(db, tenant, table_id)
    table.is_occupied = not table.is_occupied
    db.commit()
    db.refresh(table)
    return {"success": True, "table": to_wire(TableOut, table)}
