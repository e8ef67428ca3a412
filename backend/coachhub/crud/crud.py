import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from coachhub.core.database import sibling_session_factory
from coachhub.crud.default_exercises import DEFAULT_EXERCISES
from coachhub.models import models

logger = logging.getLogger(__name__)

_SETS_FIELDS = ("default_sets", "default_reps", "default_weight")
_CARDIO_FIELDS = ("default_duration_minutes", "default_distance_km", "default_intensity")

# --- Trainers ---
def get_trainer(db: DBSession, trainer_id: str) -> Optional[models.Trainer]:
    return db.query(models.Trainer).filter(models.Trainer.id == trainer_id).first()

def get_trainer_by_email(db: DBSession, email: str) -> Optional[models.Trainer]:
    return db.query(models.Trainer).filter(models.Trainer.email == email).first()

def list_trainers(db: DBSession) -> List[models.Trainer]:
    return db.query(models.Trainer).order_by(
        models.Trainer.created_at.desc(),
        models.Trainer.id.asc()
    ).all()

def count_customers_for_trainer(db: DBSession, trainer_id: str) -> int:
    return db.query(func.count(models.Customer.id)).filter(
        models.Customer.trainer_id == trainer_id
    ).scalar() or 0

def count_exercises_for_trainer(db: DBSession, trainer_id: str) -> int:
    # Global exercises (trainer_id IS NULL) never match the equality filter.
    return db.query(func.count(models.Exercise.id)).filter(
        models.Exercise.trainer_id == trainer_id
    ).scalar() or 0

def count_customers_for_trainers(db: DBSession, trainer_ids: Sequence[str], max_workers: int = 8) -> Dict[str, int]:
    """Client count per trainer, read concurrently.

    Each worker opens its own session on the engine behind `db`; the reads are
    independent and the result is keyed by trainer id, so completion order
    does not matter. The first failing read is re-raised.
    """
    if not trainer_ids:
        return {}

    session_factory = sibling_session_factory(db)

    def _count(trainer_id: str) -> tuple[str, int]:
        with session_factory() as worker_db:
            return trainer_id, count_customers_for_trainer(worker_db, trainer_id)

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(trainer_ids)))) as pool:
        return dict(pool.map(_count, trainer_ids))

# --- Customers ---
def get_customer(db: DBSession, customer_id: str) -> Optional[models.Customer]:
    return db.query(models.Customer).filter(models.Customer.id == customer_id).first()

def get_customer_by_email(db: DBSession, email: str) -> Optional[models.Customer]:
    return db.query(models.Customer).filter(models.Customer.email == email).first()

def list_customers(db: DBSession, trainer_id: Optional[str] = None) -> List[models.Customer]:
    query = db.query(models.Customer)
    if trainer_id is not None:
        query = query.filter(models.Customer.trainer_id == trainer_id)
    return query.order_by(models.Customer.created_at.desc(), models.Customer.id.asc()).all()

def update_customer_details(db: DBSession, customer: models.Customer, changes: Dict[str, Any]) -> models.Customer:
    for key, value in changes.items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)
    return customer

def set_customer_password(
    db: DBSession,
    customer: models.Customer,
    password_hash: str,
    mark_one_time_used: bool = False,
) -> models.Customer:
    customer.password_hash = password_hash
    if mark_one_time_used:
        customer.one_time_password_used = True
    db.commit()
    db.refresh(customer)
    return customer

# --- Customer resources ---
def list_workouts_for_customer(db: DBSession, customer_id: str) -> List[models.Workout]:
    return db.query(models.Workout).filter(
        models.Workout.customer_id == customer_id
    ).order_by(
        models.Workout.date.asc(),
        models.Workout.created_at.asc()
    ).all()

def get_nutrition_target_for_customer(db: DBSession, customer_id: str) -> Optional[models.NutritionTarget]:
    return db.query(models.NutritionTarget).filter(
        models.NutritionTarget.customer_id == customer_id
    ).first()

def list_weight_goals_for_customer(db: DBSession, customer_id: str) -> List[models.WeightGoal]:
    return db.query(models.WeightGoal).filter(
        models.WeightGoal.customer_id == customer_id
    ).order_by(
        models.WeightGoal.start_date.desc(),
        models.WeightGoal.created_at.desc()
    ).all()

# --- Messages ---
def customer_has_unread_messages(db: DBSession, customer_id: str, since: Optional[datetime] = None) -> bool:
    """True when the customer has posted a message after `since` (or ever, without it)."""
    query = db.query(models.Message.id).filter(
        models.Message.customer_id == customer_id,
        models.Message.sender == "customer"
    )
    if since is not None:
        query = query.filter(models.Message.created_at > since)
    return query.limit(1).first() is not None

def count_unread_for_customer(db: DBSession, customer_id: str, since: Optional[datetime] = None) -> int:
    """Admin messages, plus admin likes and replies on the customer's messages, after `since`.

    Likes and replies are only counted when `since` is given.
    """
    messages = db.query(func.count(models.Message.id)).filter(
        models.Message.customer_id == customer_id,
        models.Message.sender == "admin"
    )
    if since is not None:
        messages = messages.filter(models.Message.created_at > since)
    total = messages.scalar() or 0

    if since is None:
        return total

    own_message_ids = db.query(models.Message.id).filter(
        models.Message.customer_id == customer_id,
        models.Message.sender == "customer"
    )
    total += db.query(func.count(models.MessageLike.id)).filter(
        models.MessageLike.message_id.in_(own_message_ids),
        models.MessageLike.liked_by == "admin",
        models.MessageLike.created_at > since
    ).scalar() or 0
    total += db.query(func.count(models.MessageReply.id)).filter(
        models.MessageReply.message_id.in_(own_message_ids),
        models.MessageReply.sender == "admin",
        models.MessageReply.created_at > since
    ).scalar() or 0
    return total

# --- Exercises ---
def _exercise_row(trainer_id: str, exercise: Dict[str, Any]) -> Dict[str, Any]:
    row = {
        "trainer_id": trainer_id,
        "name": exercise["name"],
        "display_name": exercise["display_name"],
        "exercise_type": exercise["exercise_type"],
        "muscle_groups": list(exercise["muscle_groups"]),
        "image_url": exercise.get("image_url"),
        "video_url": exercise.get("video_url"),
    }
    typed_fields = _SETS_FIELDS if exercise["exercise_type"] == "sets" else _CARDIO_FIELDS
    for key in typed_fields:
        row[key] = exercise.get(key)
    return row

def seed_default_exercises(db: DBSession, trainer_id: str) -> int:
    """Insert the starter exercises the trainer does not have yet. Returns the number inserted."""
    existing = {
        name for (name,) in db.query(models.Exercise.name).filter(models.Exercise.trainer_id == trainer_id)
    }
    missing = [exercise for exercise in DEFAULT_EXERCISES if exercise["name"] not in existing]
    if not missing:
        return 0

    try:
        db.add_all(models.Exercise(**_exercise_row(trainer_id, exercise)) for exercise in missing)
        db.commit()
        inserted = len(missing)
    except IntegrityError:
        # A concurrent seed won the race for some names; insert one by one and skip duplicates.
        db.rollback()
        logger.info("Some exercises already exist for trainer %s, inserting individually", trainer_id)
        inserted = 0
        for exercise in missing:
            try:
                with db.begin_nested():
                    db.add(models.Exercise(**_exercise_row(trainer_id, exercise)))
                inserted += 1
            except IntegrityError:
                continue
        db.commit()

    logger.info(
        "Seeded %s default exercises for trainer %s (%s already existed)",
        inserted, trainer_id, len(DEFAULT_EXERCISES) - inserted
    )
    return inserted

# --- Branding ---
def get_branding_settings(db: DBSession, trainer_id: str) -> Optional[models.BrandingSettings]:
    return db.query(models.BrandingSettings).filter(
        models.BrandingSettings.trainer_id == trainer_id
    ).first()
