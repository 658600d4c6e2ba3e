from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..services.date_utils import parse_calendar_day
from .payment import RowId


def clamp_payment_day(value: Optional[int]) -> Optional[int]:
  if value is None:
    return None
  return max(1, min(31, int(value)))


class RentalAgreement(BaseModel):
  """A row of the ``requests`` table once it carries rental terms."""

  model_config = ConfigDict(extra="allow")

  id: RowId
  user_id: Optional[RowId] = None
  post_id: Optional[RowId] = None
  requested: bool = False
  confirmed: bool = False
  rental_start_date: Optional[str] = None
  rental_end_date: Optional[str] = None
  payment_day_of_month: Optional[int] = None
  monthly_rent_amount: Optional[float] = None

  @field_validator("requested", "confirmed", mode="before")
  @classmethod
  def null_is_false(cls, value):
    return bool(value)

  @field_validator("payment_day_of_month", mode="before")
  @classmethod
  def validate_day(cls, value):
    if not value:
      return None
    return clamp_payment_day(value)

  @property
  def tenant_id(self) -> Optional[str]:
    return self.user_id

  @property
  def start_date(self) -> Optional[date]:
    return parse_calendar_day(self.rental_start_date)

  @property
  def end_date(self) -> Optional[date]:
    return parse_calendar_day(self.rental_end_date)

  @property
  def has_terms(self) -> bool:
    return bool(self.start_date and self.end_date and self.monthly_rent_amount)


class RentalAdvance(BaseModel):
  startDate: Optional[date] = None
  endDate: Optional[date] = None
  paymentDay: Optional[int] = None

  @field_validator("paymentDay")
  @classmethod
  def validate_day(cls, value: Optional[int]) -> Optional[int]:
    return clamp_payment_day(value)

  @model_validator(mode="after")
  def check_range(self):
    if self.startDate and self.endDate and self.startDate > self.endDate:
      raise ValueError("startDate must not be after endDate")
    return self


class RentalDatesUpdate(BaseModel):
  startDate: date
  endDate: date
  paymentDay: int
  monthlyAmount: float

  @field_validator("paymentDay")
  @classmethod
  def validate_day(cls, value: int) -> int:
    return clamp_payment_day(value)

  @field_validator("monthlyAmount")
  @classmethod
  def validate_amount(cls, value: float) -> float:
    if value < 0:
      raise ValueError("monthlyAmount must be positive")
    return value

  @model_validator(mode="after")
  def check_range(self):
    if self.startDate > self.endDate:
      raise ValueError("startDate must not be after endDate")
    return self
