from pydantic import BaseModel, Field
from typing import List

class GroupCreate(BaseModel):
    name: str | None = None
    description: str | None = None

class GroupJoin(BaseModel):
    code: int = Field(ge=100000, le=999999)

class MemberOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str

    class Config:
        from_attributes = True

class GroupOut(BaseModel):
    id: int
    code: int
    name: str | None = None
    description: str | None = None

    class Config:
        from_attributes = True

class GroupDetailOut(GroupOut):
    members: List[MemberOut] = []
