import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from coachhub.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Trainer(Base):
    __tablename__ = "trainers"

    id = Column(String, primary_key=True, default=_new_id)
    auth_user_id = Column(String, unique=True, index=True, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    full_name = Column(String, nullable=True)
    business_name = Column(String, nullable=True)
    subscription_tier = Column(String, nullable=False, default="free") # free, basic, pro, enterprise
    subscription_status = Column(String, nullable=False, default="active") # active, cancelled, expired, trial
    max_clients = Column(Integer, nullable=False, default=3)
    max_exercises = Column(Integer, nullable=False, default=0)
    email_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String, primary_key=True, default=_new_id)
    trainer_id = Column(String, ForeignKey("trainers.id"), index=True, nullable=True)
    email = Column(String, unique=True, index=True, nullable=True)
    password_hash = Column(String, nullable=True)
    full_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    one_time_password_used = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)


class Workout(Base):
    __tablename__ = "workouts"

    id = Column(String, primary_key=True, default=_new_id)
    customer_id = Column(String, ForeignKey("customers.id"), index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    name = Column(String, nullable=True)
    exercises = Column(JSON, nullable=False, default=list)
    completed = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)


class NutritionTarget(Base):
    __tablename__ = "nutrition_targets"

    id = Column(String, primary_key=True, default=_new_id)
    customer_id = Column(String, ForeignKey("customers.id"), unique=True, index=True, nullable=False)
    calories = Column(Integer, nullable=True)
    protein_g = Column(Float, nullable=True)
    carbs_g = Column(Float, nullable=True)
    fat_g = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)


class WeightGoal(Base):
    __tablename__ = "weight_goals"

    id = Column(String, primary_key=True, default=_new_id)
    customer_id = Column(String, ForeignKey("customers.id"), index=True, nullable=False)
    start_date = Column(Date, index=True, nullable=False)
    target_date = Column(Date, nullable=True)
    start_weight = Column(Float, nullable=True)
    target_weight = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)


class Message(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=_new_id)
    customer_id = Column(String, ForeignKey("customers.id"), index=True, nullable=False)
    sender = Column(String, nullable=False) # customer, admin
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), index=True, default=utcnow)


class MessageLike(Base):
    __tablename__ = "message_likes"

    id = Column(String, primary_key=True, default=_new_id)
    message_id = Column(String, ForeignKey("messages.id"), index=True, nullable=False)
    liked_by = Column(String, nullable=False) # customer, admin

    created_at = Column(DateTime(timezone=True), default=utcnow)


class MessageReply(Base):
    __tablename__ = "message_replies"

    id = Column(String, primary_key=True, default=_new_id)
    message_id = Column(String, ForeignKey("messages.id"), index=True, nullable=False)
    sender = Column(String, nullable=False) # customer, admin
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)


class Exercise(Base):
    __tablename__ = "exercises"
    __table_args__ = (UniqueConstraint("trainer_id", "name", name="uq_exercises_trainer_name"),)

    id = Column(String, primary_key=True, default=_new_id)
    trainer_id = Column(String, ForeignKey("trainers.id"), index=True, nullable=True) # null for global exercises
    name = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    exercise_type = Column(String, nullable=False) # sets, cardio
    default_sets = Column(Integer, nullable=True)
    default_reps = Column(String, nullable=True)
    default_weight = Column(String, nullable=True)
    default_duration_minutes = Column(Integer, nullable=True)
    default_distance_km = Column(Float, nullable=True)
    default_intensity = Column(String, nullable=True)
    muscle_groups = Column(JSON, nullable=False, default=list)
    image_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)


class BrandingSettings(Base):
    __tablename__ = "branding_settings"

    id = Column(String, primary_key=True, default=_new_id)
    trainer_id = Column(String, ForeignKey("trainers.id"), unique=True, index=True, nullable=True)
    brand_name = Column(String, nullable=True)
    tagline = Column(String, nullable=True)
    logo_url = Column(String, nullable=True)
    secondary_color = Column(String, nullable=True)
    admin_profile_picture_url = Column(String, nullable=True)
    admin_name = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow)
