from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from tableside.api.deps import admin_only
from tableside.core.database import get_db
from tableside.core.errors import NotFound
from tableside.models.food import Food
from tableside.models.schemas import FoodCreate, FoodOut, FoodUpdate, to_wire
from tableside.services import order_store
from tableside.services.sessions import SessionContext

router = APIRouter()


def _get_food(db: Session, tenant: str, food_id: int) -> Food:
    food = db.query(Food).filter(Food.id == food_id, Food.restaurant_id == tenant).first()
    if not food:
        raise NotFound("Food item not found")
    return food

@router.get("/{tenant}/admin/foods")
def list_foods(tenant: str, session: SessionContext = Depends(admin_only), db: Session = Depends(get_db)):
    foods = db.query(Food).filter(Food.restaurant_id == tenant).order_by(Food.category, Food.name).all()
    return {"foods": [to_wire(FoodOut, f) for f in foods]}

@router.post("/{tenant}/admin/foods")
def add_food(tenant: str, data: FoodCreate, session: SessionContext = Depends(admin_only),
             db: Session = Depends(get_db)):
    order_store.require_restaurant(db, tenant)
    food = Food(restaurant_id=tenant, **data.model_dump())
    db.add(food)
    db.commit()
    db.refresh(food)
    return {"success": True, "foodId": food.id, "food": to_wire(FoodOut, food),
            "message": "Food item added successfully"}

@router.put("/{tenant}/admin/foods/{food_id}")
def update_food(tenant: str, food_id: int, changes: FoodUpdate, session: SessionContext = Depends(admin_only),
                db: Session = Depends(get_db)):
    """Price edits only affect future orders; placed orders keep their snapshot"""
    food = _get_food(db, tenant, food_id)
    for name, value in changes.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(food, name, value)
    db.commit()
    db.refresh(food)
    return {"success": True, "food": to_wire(FoodOut, food), "message": "Food item updated successfully"}

@router.delete("/{tenant}/admin/foods/{food_id}")
def delete_food(tenant: str, food_id: int, session: SessionContext = Depends(admin_only),
                db: Session = Depends(get_db)):
    food = _get_food(db, tenant, food_id)
    db.delete(food)
    db.commit()
    return {"success": True, "message": "Food item deleted successfully"}
