"""
Admin action payloads, one variant per action
"""

from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, EmailStr, Field

class ApprovePayment(BaseModel):
    action: Literal["approve_payment"]
    rsvp_id: str

class RejectPayment(BaseModel):
    action: Literal["reject_payment"]
    rsvp_id: str

class CheckIn(BaseModel):
    action: Literal["check_in"]
    event_id: str
    token: str
    food_token_given: bool = False
    notes: Optional[str] = None

class ManualCheckIn(BaseModel):
    action: Literal["manual_check_in"]
    event_id: str
    email: EmailStr
    food_token_given: bool = False
    notes: Optional[str] = None

AdminAction = Annotated[
    Union[ApprovePayment, RejectPayment, CheckIn, ManualCheckIn],
    Field(discriminator="action"),
]
