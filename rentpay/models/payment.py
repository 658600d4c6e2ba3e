from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, field_validator

# Supabase ids come back as ints or uuid strings depending on the table
RowId = Annotated[str, BeforeValidator(lambda value: str(value))]


class PaymentStatus(str, Enum):
  unpaid = "unpaid"
  paid = "paid"
  overdue = "overdue"
  partial = "partial"
  cancelled = "cancelled"


class PaymentRecord(BaseModel):
  # joined relations (tenant, post, request) pass through untouched
  model_config = ConfigDict(extra="allow")

  id: Optional[RowId] = None
  request_id: Optional[RowId] = None
  landlord_id: Optional[RowId] = None
  tenant_id: Optional[RowId] = None
  post_id: Optional[RowId] = None
  due_date: Optional[str] = None
  amount: Optional[float] = 0
  status: str = PaymentStatus.unpaid.value
  payment_date: Optional[str] = None
  payment_method: Optional[str] = None
  notes: Optional[str] = None
  created_at: Optional[str] = None
  updated_at: Optional[str] = None

  @field_validator("status", mode="before")
  @classmethod
  def default_status(cls, value):
    return value or PaymentStatus.unpaid.value


class PaymentUpdate(BaseModel):
  status: PaymentStatus
  paymentDate: Optional[str] = None
  notes: Optional[str] = None
  paymentMethod: Optional[str] = None


class PaymentStats(BaseModel):
  total_due: float = 0
  total_paid: float = 0
  total_overdue: float = 0
  total_partial: float = 0
  payment_count: int = 0
  paid_count: int = 0
  unpaid_count: int = 0
  overdue_count: int = 0
  partial_count: int = 0
