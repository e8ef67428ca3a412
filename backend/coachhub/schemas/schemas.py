from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Any, Optional, List

class EnvelopeModel(BaseModel):
    """Response wrapper whose camelCase wire keys map to snake_case attributes."""
    model_config = ConfigDict(populate_by_name=True)

# --- Auth Schemas ---
class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class PasswordUpdateRequest(EnvelopeModel):
    new_password: Optional[str] = Field(None, alias="newPassword")

class LoginUser(BaseModel):
    id: str
    email: Optional[str] = None

class CustomerLoginResponse(EnvelopeModel):
    success: bool = True
    needs_password_update: bool = Field(..., alias="needsPasswordUpdate")
    user: LoginUser

class AuthCheckResponse(EnvelopeModel):
    authenticated: bool
    user_id: Optional[str] = Field(None, alias="userId")
    email: Optional[str] = None

class StaffCheckResponse(EnvelopeModel):
    authenticated: bool
    email: Optional[str] = None
    role: str
    is_trainer: bool = Field(..., alias="isTrainer")
    is_platform_admin: bool = Field(..., alias="isPlatformAdmin")

class MessageResponse(BaseModel):
    message: str

class SuccessMessageResponse(BaseModel):
    success: bool = True
    message: str

# --- Trainer Schemas ---
class TrainerBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    full_name: Optional[str] = None
    business_name: Optional[str] = None
    subscription_tier: str = "free"
    subscription_status: str = "active"
    max_clients: int = 3
    max_exercises: int = 0
    email_verified: bool = False
    created_at: Optional[datetime] = None

class TrainerWithStatsResponse(TrainerBase):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    client_count: int = Field(0, alias="clientCount")

class TrainerListResponse(BaseModel):
    trainers: List[TrainerWithStatsResponse] = []

class TrainerProfile(EnvelopeModel):
    id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = Field(None, alias="fullName")
    business_name: Optional[str] = Field(None, alias="businessName")
    subscription_tier: str = Field("free", alias="subscriptionTier")
    subscription_status: str = Field("active", alias="subscriptionStatus")
    max_clients: int = Field(9999, alias="maxClients")
    max_exercises: int = Field(0, alias="maxExercises")
    client_count: int = Field(0, alias="clientCount")
    exercise_count: int = Field(0, alias="exerciseCount")
    is_legacy_admin: bool = Field(False, alias="isLegacyAdmin")

class TrainerLoginResponse(SuccessMessageResponse):
    trainer: TrainerProfile

class TrainerMeResponse(BaseModel):
    trainer: TrainerProfile

# --- Customer Schemas ---
class CustomerResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    trainer_id: Optional[str] = None
    one_time_password_used: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CustomerInfoResponse(BaseModel):
    customer: Optional[CustomerResponse] = None

class CustomerListResponse(BaseModel):
    customers: List[CustomerResponse] = []

class CustomerUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

class CustomerUpdateResponse(BaseModel):
    customer: CustomerResponse
    message: str

# --- Workout / Nutrition / Weight Schemas ---
class WorkoutResponse(BaseModel):
    id: str
    customer_id: str
    date: date
    name: Optional[str] = None
    exercises: List[Any] = []
    completed: bool = False
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class WorkoutListResponse(BaseModel):
    workouts: List[WorkoutResponse] = []

class NutritionTargetResponse(BaseModel):
    id: str
    customer_id: str
    calories: Optional[int] = None
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    fat_g: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class NutritionTargetEnvelope(BaseModel):
    target: Optional[NutritionTargetResponse] = None

class WeightGoalResponse(BaseModel):
    id: str
    customer_id: str
    start_date: date
    target_date: Optional[date] = None
    start_weight: Optional[float] = None
    target_weight: Optional[float] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class WeightGoalListResponse(EnvelopeModel):
    weight_goals: List[WeightGoalResponse] = Field(default_factory=list, alias="weightGoals")

# --- Message Schemas ---
class UnreadFlagResponse(EnvelopeModel):
    has_unread: bool = Field(..., alias="hasUnread")

class UnreadCountResponse(EnvelopeModel):
    unread_count: int = Field(..., alias="unreadCount")
