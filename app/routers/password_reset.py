# app/routers/password_reset.py
"""
Reset-credential endpoints used by the password-reset flow.
Delivery (email/SMS) and password hashing belong to the caller, which must hold
the manage_credentials capability: whoever sees a credential can act as its subject.
"""

from fastapi import APIRouter, Depends, HTTPException
from app.dependencies import get_credential_store, require
from app.schemas.credential import (
    CredentialCheck,
    CredentialStatusOut,
    IssuedCredentialOut,
    ResetRequest,
)
from app.services.credential_store import EphemeralCredentialStore
from app.services.permissions import MANAGE_CREDENTIALS

router = APIRouter()


@router.post("/password-reset/issue", response_model=IssuedCredentialOut,
             summary="Issue a reset token or verification code",
             dependencies=[require(MANAGE_CREDENTIALS)])
def issue(body: ResetRequest, store: EphemeralCredentialStore = Depends(get_credential_store)):
    if body.kind == "code":
        credential = store.issue_code(body.subject_id)
    elif body.kind == "token":
        credential = store.issue(body.subject_id)
    else:
        raise HTTPException(status_code=400, detail="kind must be 'token' or 'code'")
    return IssuedCredentialOut(credential=credential,
                               expires_in_seconds=int(store.validity.total_seconds()))


@router.post("/password-reset/validate", response_model=CredentialStatusOut,
             summary="Check a credential without using it",
             dependencies=[require(MANAGE_CREDENTIALS)])
def validate(body: CredentialCheck, store: EphemeralCredentialStore = Depends(get_credential_store)):
    subject_id, ok = store.validate(body.credential)
    return CredentialStatusOut(valid=ok, subject_id=subject_id if ok else None)


@router.post("/password-reset/consume", response_model=CredentialStatusOut,
             summary="Use a credential once (on password change)",
             dependencies=[require(MANAGE_CREDENTIALS)])
def consume(body: CredentialCheck, store: EphemeralCredentialStore = Depends(get_credential_store)):
    subject_id, ok = store.consume(body.credential)
    return CredentialStatusOut(valid=ok, subject_id=subject_id if ok else None)


@router.post("/password-reset/invalidate", summary="Revoke a credential",
             dependencies=[require(MANAGE_CREDENTIALS)])
def invalidate(body: CredentialCheck, store: EphemeralCredentialStore = Depends(get_credential_store)):
    store.invalidate(body.credential)
    return {"status": "invalidated"}
