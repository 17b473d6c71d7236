from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Credentials for /login
class UserLogin(UserBase):
    password: str

# Registration payload; role is always assigned by the server
class UserCreate(UserBase):
    password: str = Field(min_length=6)
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class UserResponse(UserBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
