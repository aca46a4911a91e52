"""
RSVP form and answer schemas
"""

from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, EmailStr, Field

FieldType = Literal["text", "number", "select", "checkbox", "radio"]

class RSVPField(BaseModel):
    """One question on an event's RSVP form"""
    id: str
    type: FieldType
    label: str
    required: bool = False
    options: Optional[List[str]] = None

class TextAnswer(BaseModel):
    kind: Literal["text"] = "text"
    value: str

class NumberAnswer(BaseModel):
    kind: Literal["number"] = "number"
    value: float

class BooleanAnswer(BaseModel):
    kind: Literal["boolean"] = "boolean"
    value: bool

class ChoiceAnswer(BaseModel):
    kind: Literal["choice"] = "choice"
    value: str

Answer = Annotated[
    Union[TextAnswer, NumberAnswer, BooleanAnswer, ChoiceAnswer],
    Field(discriminator="kind"),
]

class RegistrantCreate(BaseModel):
    first_name: str
    last_name: str = ""
    email: EmailStr
    mobile_number: Optional[str] = None

class RSVPSubmit(BaseModel):
    """RSVP submitted (or updated) by a registrant"""
    email: EmailStr
    responses: Dict[str, object] = {}
    payment_reference: Optional[str] = None
    guest_count: int = Field(default=0, ge=0)
    veg_count: Optional[int] = Field(default=None, ge=0)
    non_veg_count: Optional[int] = Field(default=None, ge=0)
    kids_count: Optional[int] = Field(default=None, ge=0)
    no_food: bool = False

class RSVPResponseOut(BaseModel):
    id: str
    event_id: str
    user_id: str
    responses: Dict[str, Answer]
    payment_reference: Optional[str] = None
    payment_confirmed: bool
    guest_count: int
    checked_in: bool
    food_token_given: bool
    
    class Config:
        from_attributes = True
