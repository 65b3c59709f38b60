# app/schemas/credential.py
from pydantic import BaseModel
from typing import Optional


class ResetRequest(BaseModel):
    subject_id: int
    kind: str = "token"              # token | code


class IssuedCredentialOut(BaseModel):
    credential: str
    expires_in_seconds: int


class CredentialCheck(BaseModel):
    credential: str


class CredentialStatusOut(BaseModel):
    valid: bool
    subject_id: Optional[int] = None
