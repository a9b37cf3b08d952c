# backend/app/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Any

from pydantic import BaseModel, Field, ConfigDict


# -------------------- Auth / users --------------------

class SignUpIn(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    password: str
    confirm_password: str
    address: Optional[str] = None


class LoginIn(BaseModel):
    # phone number or email
    username: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone_country_code: str
    phone_number: Optional[str] = None
    roles: str
    address: Optional[str] = None
    active: bool
    is_locked: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RolesIn(BaseModel):
    roles: list[str]


class BankingCreate(BaseModel):
    bank_name: str
    account_number: str
    account_holder: str


class BankingOut(BankingCreate):
    id: int
    user_id: int
    model_config = ConfigDict(from_attributes=True)


# -------------------- Inventory --------------------

class MotelCreate(BaseModel):
    name: str
    address: str = ""
    description: Optional[str] = None
    owner_id: Optional[int] = None  # master may create on behalf of a host


class MotelUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None


class MotelOut(BaseModel):
    id: int
    owner_id: int
    name: str
    address: str
    description: Optional[str] = None
    total_floor: int
    total_room: int
    available_room: int
    deposited_room: int
    rented_room: int
    is_completed: bool
    model_config = ConfigDict(from_attributes=True)


class FloorCreate(BaseModel):
    motel_id: int
    name: str


class FloorOut(BaseModel):
    id: int
    motel_id: int
    name: str
    key: str
    total_room: int
    available_room: int
    deposited_room: int
    rented_room: int
    is_completed: bool
    model_config = ConfigDict(from_attributes=True)


class RoomFields(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    deposit_price: Optional[float] = Field(default=None, ge=0)
    electricity_price: Optional[float] = Field(default=None, ge=0)
    water_price: Optional[float] = Field(default=None, ge=0)
    wifi_price: Optional[float] = Field(default=None, ge=0)
    vehicle_price: Optional[float] = Field(default=None, ge=0)
    garbage_price: Optional[float] = Field(default=None, ge=0)
    acreage: Optional[float] = Field(default=None, ge=0)
    minimum_months: Optional[int] = Field(default=None, ge=1)
    id_electric_meter: Optional[str] = None
    room_password: Optional[str] = None
    # list, or a comma separated string as sent by the admin form
    utilities: Optional[list[str] | str] = None
    description: Optional[str] = None
    available_date: Optional[date] = None
    unavailable_date: Optional[date] = None


class RoomCreate(RoomFields):
    floor_id: int
    name: str
    status: Optional[str] = None
    person: Optional[int] = Field(default=None, ge=0)
    vehicle: Optional[int] = Field(default=None, ge=0)


class RoomUtilitiesIn(BaseModel):
    price: Optional[float] = Field(default=None, ge=0)
    deposit_price: Optional[float] = Field(default=None, ge=0)
    electricity_price: Optional[float] = Field(default=None, ge=0)
    water_price: Optional[float] = Field(default=None, ge=0)
    wifi_price: Optional[float] = Field(default=None, ge=0)
    vehicle_price: Optional[float] = Field(default=None, ge=0)
    garbage_price: Optional[float] = Field(default=None, ge=0)
    person: Optional[int] = Field(default=None, ge=0)
    vehicle: Optional[int] = Field(default=None, ge=0)
    room_password: Optional[str] = None
    description: Optional[str] = None
    utilities: Optional[list[str] | str] = None


class RoomStatusIn(BaseModel):
    status: str


class RoomOut(BaseModel):
    id: int
    floor_id: int
    name: str
    key: str
    status: str
    price: float
    deposit_price: float
    electricity_price: float
    water_price: float
    wifi_price: float
    vehicle_price: float
    garbage_price: float
    acreage: float
    minimum_months: int
    person: int
    vehicle: int
    id_electric_meter: Optional[str] = None
    utilities: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    available_date: Optional[date] = None
    unavailable_date: Optional[date] = None
    is_completed: bool
    rented_by: Optional[int] = None
    model_config = ConfigDict(from_attributes=True)


class RoomDetailOut(BaseModel):
    room: RoomOut
    floor_id: Optional[int] = None
    motel_id: Optional[int] = None
    motel: Optional[MotelOut] = None


class FloorDetailOut(FloorOut):
    rooms: list[RoomOut] = Field(default_factory=list)


class MotelDetailOut(MotelOut):
    floors: list[FloorOut] = Field(default_factory=list)


# -------------------- Contracts --------------------

class QuickContractIn(BaseModel):
    phone_number: str
    check_in_time: str  # DD/MM/YYYY
    room_id: int
    rental_period: int = Field(default=1, ge=1)
    bank_id: Optional[int] = None
    key_payment: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None


class JobCreate(BaseModel):
    room_id: int
    check_in_time: str  # DD/MM/YYYY
    rental_period: int = Field(default=1, ge=1)


class IdentityImagesIn(BaseModel):
    images: list[str]


class JobOut(BaseModel):
    id: int
    user_id: int
    room_id: int
    check_in_date: date
    rental_period: int
    price: float
    bail: float
    deposit: float
    after_check_in_cost: float
    total: float
    status: str
    is_completed: bool
    is_actived: bool
    full_name: str
    phone_number: Optional[str] = None
    current_order_id: Optional[int] = None
    identity_images: list[str] = Field(default_factory=list)
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RentedRoomOut(BaseModel):
    job: JobOut
    room: RoomOut
    motel: MotelOut


# -------------------- Billing --------------------

class OrderOut(BaseModel):
    id: int
    user_id: int
    job_id: int
    key_order: str
    type: str
    description: str
    amount: float
    is_completed: bool
    payment_method: Optional[str] = None
    expire_time: Optional[datetime] = None
    start_time: Optional[date] = None
    end_time: Optional[date] = None
    number_day_stay: Optional[int] = None
    electric_number: float
    electric_price: float
    water_price: float
    service_price: float
    vehicle_price: float
    room_price: float
    wifi_price: float
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PayCashIn(BaseModel):
    bank_id: Optional[int] = None


class TransactionCreate(BaseModel):
    order_id: int
    bank_id: Optional[int] = None
    key_payment: Optional[str] = None


class TransactionOut(BaseModel):
    id: int
    user_id: int
    order_id: int
    motel_id: int
    room_id: int
    banking_id: Optional[int] = None
    key_payment: str
    key_order: str
    description: str
    amount: float
    status: str
    payment_method: str
    type: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class BillOut(BaseModel):
    id: int
    order_id: int
    user_id: int
    motel_id: int
    room_id: int
    id_bill: str
    date_bill: date
    type: str
    description: str
    name_motel: str
    address_motel: str
    name_room: str
    name_user: str
    phone_user: str
    address_user: str
    email_user: str
    name_owner: str
    email_owner: str
    phone_owner: str
    address_owner: str
    name_bank_owner: str
    number_bank_owner: str
    name_owner_bank_owner: str
    total_all: float
    total_and_tax_all: float
    total_tax_all: float
    type_tax_all: float
    start_time: Optional[date] = None
    end_time: Optional[date] = None
    line_items: dict[str, Any] = Field(default_factory=dict)
    model_config = ConfigDict(from_attributes=True)


class NotificationOut(BaseModel):
    id: int
    title: str
    content: str
    type: str
    tag: Optional[str] = None
    content_tag: Optional[str] = None
    url: Optional[str] = None
    is_read: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# -------------------- Energy --------------------

class EnergyReadingIn(BaseModel):
    kwh: float = Field(ge=0)
    recorded_at: Optional[datetime] = None


class EnergyUsageOut(BaseModel):
    total_kwh: float
    labels: list[str]
    daily_kwh: list[float]


class MessageOut(BaseModel):
    message: str
