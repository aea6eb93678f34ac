from pydantic import BaseModel, Field

class AuthCodeIn(BaseModel):
    code: str = Field(min_length=1)

class AuthOut(BaseModel):
    token: str
