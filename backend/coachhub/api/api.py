import hmac
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from coachhub.core.auth import (
    Principal,
    SessionIntrospector,
    authenticate_customer,
    authenticate_staff,
    get_current_customer,
    get_current_staff,
    get_session_introspector,
    require_platform_admin,
    require_trainer_id,
)
from coachhub.core.config import settings
from coachhub.core.database import get_db
from coachhub.core.security import (
    clear_session_cookie,
    encode_admin_token,
    encode_customer_token,
    encode_trainer_token,
    hash_password,
    set_session_cookie,
    verify_password,
)
from coachhub.crud import crud
from coachhub.models import models
from coachhub.schemas import schemas

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_BRANDING = {
    "brand_name": "APEX Training",
    "tagline": "Elite Personal Training Platform",
    "logo_url": None,
    "secondary_color": "#3b82f6",
    "admin_profile_picture_url": None,
    "admin_name": None,
}

_BRANDING_FIELDS = ("id", "trainer_id", *DEFAULT_BRANDING.keys())


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _validate_new_password(new_password: Optional[str]) -> str:
    if not new_password or len(new_password) < settings.MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
        )
    return new_password


def _get_customer_for_staff(db: Session, principal: Principal, customer_id: str) -> models.Customer:
    customer = crud.get_customer(db, customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    if principal.trainer_id is not None and customer.trainer_id != principal.trainer_id:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


def _trainer_profile(
    trainer: models.Trainer,
    client_count: int = 0,
    exercise_count: int = 0,
) -> schemas.TrainerProfile:
    return schemas.TrainerProfile(
        id=trainer.id,
        email=trainer.email,
        full_name=trainer.full_name,
        business_name=trainer.business_name,
        subscription_tier=trainer.subscription_tier,
        subscription_status=trainer.subscription_status,
        max_clients=trainer.max_clients,
        max_exercises=trainer.max_exercises or 0,
        client_count=client_count,
        exercise_count=exercise_count,
        is_legacy_admin=False,
    )

# --- Customer Auth ---
@router.post("/auth/login", response_model=schemas.CustomerLoginResponse)
def login_customer(payload: schemas.LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Verify customer credentials and start a `user_session`."""
    email = _normalize_email(payload.email)
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    try:
        customer = crud.get_customer_by_email(db, email)
    except SQLAlchemyError as exc:
        logger.exception("Error looking up customer for login")
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    if customer is None or not verify_password(payload.password, customer.password_hash):
        logger.warning("Failed customer login for %s", email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    set_session_cookie(
        response,
        settings.CUSTOMER_SESSION_COOKIE,
        encode_customer_token(customer.id, customer.email),
    )
    return schemas.CustomerLoginResponse(
        needs_password_update=not customer.one_time_password_used,
        user=schemas.LoginUser(id=customer.id, email=customer.email),
    )

@router.get("/auth/check", response_model=schemas.AuthCheckResponse)
def check_customer_session(request: Request):
    principal = authenticate_customer(request.cookies)
    if principal is None:
        raise HTTPException(status_code=401, detail={"authenticated": False})
    return schemas.AuthCheckResponse(authenticated=True, user_id=principal.id, email=principal.email)

@router.post("/auth/logout", response_model=schemas.MessageResponse)
def logout_customer(response: Response):
    clear_session_cookie(response, settings.CUSTOMER_SESSION_COOKIE)
    return schemas.MessageResponse(message="Logged out successfully")

@router.post("/auth/update-password", response_model=schemas.SuccessMessageResponse)
def update_own_password(
    payload: schemas.PasswordUpdateRequest,
    principal: Principal = Depends(get_current_customer),
    db: Session = Depends(get_db),
):
    """Replace the customer's password and mark the one-time password as used."""
    new_password = _validate_new_password(payload.new_password)
    try:
        customer = crud.get_customer(db, principal.id)
        if customer is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        crud.set_customer_password(db, customer, hash_password(new_password), mark_one_time_used=True)
    except SQLAlchemyError as exc:
        logger.exception("Error updating password for customer %s", principal.id)
        raise HTTPException(status_code=500, detail="Failed to update password") from exc
    return schemas.SuccessMessageResponse(message="Password updated successfully")

# --- Platform Admin Auth ---
@router.post("/auth/admin", response_model=schemas.SuccessMessageResponse)
def login_platform_admin(payload: schemas.LoginRequest, response: Response):
    """Check credentials against ADMIN_EMAIL / ADMIN_PASSWORD and start an `admin_session`."""
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    admin_email = settings.ADMIN_EMAIL
    admin_password = settings.ADMIN_PASSWORD
    if not admin_email or not admin_password:
        logger.error("Platform admin login attempted but ADMIN_EMAIL/ADMIN_PASSWORD are not set")
        raise HTTPException(status_code=500, detail="Admin credentials not configured")

    email_ok = hmac.compare_digest(payload.email.encode("utf-8"), admin_email.encode("utf-8"))
    password_ok = hmac.compare_digest(payload.password.encode("utf-8"), admin_password.encode("utf-8"))
    if not (email_ok and password_ok):
        logger.warning("Failed platform admin login for %s", payload.email)
        raise HTTPException(status_code=401, detail="Invalid admin credentials")

    set_session_cookie(response, settings.ADMIN_SESSION_COOKIE, encode_admin_token(admin_email))
    return schemas.SuccessMessageResponse(message="Admin login successful")

@router.get("/auth/admin/check", response_model=schemas.StaffCheckResponse)
def check_staff_session(
    request: Request,
    db: Session = Depends(get_db),
    introspector: SessionIntrospector = Depends(get_session_introspector),
):
    principal = authenticate_staff(request.cookies, db, introspector)
    if principal is None:
        raise HTTPException(status_code=401, detail={"authenticated": False})
    return schemas.StaffCheckResponse(
        authenticated=True,
        email=principal.email,
        role="admin" if principal.is_platform_admin else "trainer",
        is_trainer=principal.is_trainer,
        is_platform_admin=principal.is_platform_admin,
    )

@router.post("/auth/admin/logout", response_model=schemas.SuccessMessageResponse)
def logout_platform_admin(response: Response):
    clear_session_cookie(response, settings.ADMIN_SESSION_COOKIE)
    return schemas.SuccessMessageResponse(message="Logged out successfully")

# --- Trainer Auth ---
@router.post("/auth/trainer", response_model=schemas.TrainerLoginResponse)
def login_trainer(payload: schemas.LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Verify trainer credentials and start a `trainer_session`."""
    email = _normalize_email(payload.email)
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    try:
        trainer = crud.get_trainer_by_email(db, email)
    except SQLAlchemyError as exc:
        logger.exception("Error looking up trainer for login")
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    if trainer is None or not verify_password(payload.password, trainer.password_hash):
        logger.warning("Failed trainer login for %s", email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not trainer.email_verified:
        raise HTTPException(
            status_code=403,
            detail={
                "error": "Please verify your email address before logging in.",
                "requiresVerification": True,
                "email": trainer.email,
            },
        )
    if trainer.subscription_status == "expired":
        raise HTTPException(status_code=403, detail="Your subscription has expired. Please renew to continue.")

    set_session_cookie(response, settings.TRAINER_SESSION_COOKIE, encode_trainer_token(trainer.id, trainer.email))
    return schemas.TrainerLoginResponse(message="Login successful", trainer=_trainer_profile(trainer))

@router.post("/auth/trainer/logout", response_model=schemas.SuccessMessageResponse)
def logout_trainer(response: Response):
    clear_session_cookie(response, settings.TRAINER_SESSION_COOKIE)
    return schemas.SuccessMessageResponse(message="Logged out successfully")

@router.get("/auth/trainer/me", response_model=schemas.TrainerMeResponse)
def read_current_trainer(principal: Principal = Depends(get_current_staff), db: Session = Depends(get_db)):
    """Current trainer profile with usage counts. Platform admins get a legacy-admin profile."""
    if principal.trainer_id is None:
        return schemas.TrainerMeResponse(
            trainer=schemas.TrainerProfile(email=principal.email, is_legacy_admin=True)
        )

    try:
        trainer = crud.get_trainer(db, principal.trainer_id)
        if trainer is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        client_count = crud.count_customers_for_trainer(db, trainer.id)
        exercise_count = crud.count_exercises_for_trainer(db, trainer.id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching trainer info for %s", principal.trainer_id)
        raise HTTPException(status_code=500, detail="Failed to fetch trainer info") from exc

    return schemas.TrainerMeResponse(trainer=_trainer_profile(trainer, client_count, exercise_count))

# --- Customer Portal ---
@router.get("/customer/info", response_model=schemas.CustomerInfoResponse)
def read_customer_info(principal: Principal = Depends(get_current_customer), db: Session = Depends(get_db)):
    try:
        customer = crud.get_customer(db, principal.id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching customer info for %s", principal.id)
        raise HTTPException(status_code=500, detail="Failed to fetch customer info") from exc
    return schemas.CustomerInfoResponse(
        customer=schemas.CustomerResponse.model_validate(customer) if customer else None
    )

@router.get("/customer/workouts", response_model=schemas.WorkoutListResponse)
def read_customer_workouts(principal: Principal = Depends(get_current_customer), db: Session = Depends(get_db)):
    """All of the customer's workouts, oldest date first."""
    try:
        workouts = crud.list_workouts_for_customer(db, principal.id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching workouts for %s", principal.id)
        raise HTTPException(status_code=500, detail="Failed to fetch workouts") from exc
    return schemas.WorkoutListResponse(
        workouts=[schemas.WorkoutResponse.model_validate(workout) for workout in workouts]
    )

@router.get("/customer/nutrition", response_model=schemas.NutritionTargetEnvelope)
def read_customer_nutrition(principal: Principal = Depends(get_current_customer), db: Session = Depends(get_db)):
    try:
        target = crud.get_nutrition_target_for_customer(db, principal.id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching nutrition target for %s", principal.id)
        raise HTTPException(status_code=500, detail="Failed to fetch nutrition target") from exc
    return schemas.NutritionTargetEnvelope(
        target=schemas.NutritionTargetResponse.model_validate(target) if target else None
    )

@router.get("/customer/weight-goals", response_model=schemas.WeightGoalListResponse)
def read_customer_weight_goals(principal: Principal = Depends(get_current_customer), db: Session = Depends(get_db)):
    """Weight goals, most recent start date first."""
    try:
        goals = crud.list_weight_goals_for_customer(db, principal.id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching weight goals for %s", principal.id)
        raise HTTPException(status_code=500, detail="Failed to fetch weight goals") from exc
    return schemas.WeightGoalListResponse(
        weight_goals=[schemas.WeightGoalResponse.model_validate(goal) for goal in goals]
    )

@router.get("/customer/messages/unread", response_model=schemas.UnreadCountResponse)
def read_customer_unread_count(
    last_seen: Optional[datetime] = Query(default=None, alias="lastSeen"),
    principal: Principal = Depends(get_current_customer),
    db: Session = Depends(get_db),
):
    try:
        unread = crud.count_unread_for_customer(db, principal.id, since=_as_utc(last_seen))
    except SQLAlchemyError as exc:
        logger.exception("Error fetching unread count for %s", principal.id)
        raise HTTPException(status_code=500, detail="Failed to fetch unread count") from exc
    return schemas.UnreadCountResponse(unread_count=unread)

# --- Trainer Admin: Customers ---
@router.get("/admin/customers", response_model=schemas.CustomerListResponse)
def read_customers(principal: Principal = Depends(get_current_staff), db: Session = Depends(get_db)):
    """Customers visible to the caller, newest first. Platform admins see every trainer's customers."""
    try:
        customers = crud.list_customers(db, trainer_id=principal.trainer_id)
    except SQLAlchemyError as exc:
        logger.exception("Error fetching customers")
        raise HTTPException(status_code=500, detail="Failed to fetch customers") from exc
    return schemas.CustomerListResponse(
        customers=[schemas.CustomerResponse.model_validate(customer) for customer in customers]
    )

@router.put("/admin/customers/{customer_id}/update", response_model=schemas.CustomerUpdateResponse)
def update_customer(
    customer_id: str,
    payload: schemas.CustomerUpdate,
    principal: Principal = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    """Update contact details. Only fields present in the body change; blank strings become null."""
    changes = {
        key: (value.strip() or None) if isinstance(value, str) else None
        for key, value in payload.model_dump(exclude_unset=True).items()
    }
    if changes.get("email"):
        changes["email"] = _normalize_email(changes["email"])

    try:
        customer = _get_customer_for_staff(db, principal, customer_id)
        customer = crud.update_customer_details(db, customer, changes)
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email is already in use") from exc
    except SQLAlchemyError as exc:
        logger.exception("Error updating customer %s", customer_id)
        raise HTTPException(status_code=500, detail="Failed to update customer details") from exc

    return schemas.CustomerUpdateResponse(
        customer=schemas.CustomerResponse.model_validate(customer),
        message="Customer details updated successfully",
    )

@router.put("/admin/customers/{customer_id}/update-password", response_model=schemas.MessageResponse)
def update_customer_password(
    customer_id: str,
    payload: schemas.PasswordUpdateRequest,
    principal: Principal = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    new_password = _validate_new_password(payload.new_password)
    try:
        customer = _get_customer_for_staff(db, principal, customer_id)
        crud.set_customer_password(db, customer, hash_password(new_password))
    except SQLAlchemyError as exc:
        logger.exception("Error updating password for customer %s", customer_id)
        raise HTTPException(status_code=500, detail="Failed to update password") from exc
    return schemas.MessageResponse(message="Password updated successfully")

@router.get("/admin/customers/{customer_id}/messages/unread", response_model=schemas.UnreadFlagResponse)
def read_customer_messages_unread(
    customer_id: str,
    last_seen: Optional[datetime] = Query(default=None, alias="lastSeen"),
    principal: Principal = Depends(get_current_staff),
    db: Session = Depends(get_db),
):
    """Whether the customer has written since `lastSeen`."""
    try:
        _get_customer_for_staff(db, principal, customer_id)
        has_unread = crud.customer_has_unread_messages(db, customer_id, since=_as_utc(last_seen))
    except SQLAlchemyError as exc:
        logger.exception("Error checking messages for customer %s", customer_id)
        raise HTTPException(status_code=500, detail="Failed to check for updates") from exc
    return schemas.UnreadFlagResponse(has_unread=has_unread)

# --- Trainer Admin: Exercises ---
@router.post("/admin/exercises/seed-defaults", response_model=schemas.MessageResponse)
def seed_default_exercises(principal: Principal = Depends(require_trainer_id), db: Session = Depends(get_db)):
    try:
        crud.seed_default_exercises(db, principal.trainer_id)
    except SQLAlchemyError as exc:
        logger.exception("Error seeding default exercises for trainer %s", principal.trainer_id)
        raise HTTPException(status_code=500, detail="Failed to load default exercises") from exc
    return schemas.MessageResponse(message="Default exercises loaded successfully")

# --- Platform Admin ---
@router.get("/platform-admin/trainers", response_model=schemas.TrainerListResponse)
def read_trainers(_admin: Principal = Depends(require_platform_admin), db: Session = Depends(get_db)):
    """Every trainer, newest first, with a client count per trainer."""
    try:
        trainers = crud.list_trainers(db)
        client_counts = crud.count_customers_for_trainers(
            db,
            [trainer.id for trainer in trainers],
            max_workers=settings.TRAINER_COUNT_WORKERS,
        )
    except SQLAlchemyError as exc:
        logger.exception("Error fetching trainers")
        raise HTTPException(status_code=500, detail="Failed to fetch trainers") from exc

    return schemas.TrainerListResponse(
        trainers=[
            schemas.TrainerWithStatsResponse.model_validate(trainer).model_copy(
                update={"client_count": client_counts.get(trainer.id, 0)}
            )
            for trainer in trainers
        ]
    )

# --- Branding ---
def _resolve_branding(db: Session, trainer_id: Optional[str]) -> dict:
    if not trainer_id:
        return dict(DEFAULT_BRANDING)

    branding = crud.get_branding_settings(db, trainer_id)
    trainer = crud.get_trainer(db, trainer_id)

    first_name = None
    if trainer is not None and trainer.full_name:
        parts = trainer.full_name.split()
        first_name = parts[0] if parts else None

    if branding is not None:
        body = {field: getattr(branding, field) for field in _BRANDING_FIELDS}
        body["trainer_first_name"] = first_name
        return body
    if trainer is not None:
        return {**DEFAULT_BRANDING, "trainer_first_name": first_name}
    return dict(DEFAULT_BRANDING)

@router.get("/branding")
def read_branding(trainer_id: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    """Public branding settings. Falls back to the built-in defaults on any failure."""
    try:
        return _resolve_branding(db, trainer_id)
    except Exception:
        logger.exception("Error fetching branding settings for trainer %s", trainer_id)
        return dict(DEFAULT_BRANDING)
