"""Session and sign-in endpoints."""

from fastapi import APIRouter, Depends

from api.dependencies import get_router, get_session
from api.schemas import (
    GoogleSignInRequest,
    PhoneCodeRequest,
    PhoneCodeResponse,
    PhoneConfirmRequest,
    SessionResponse,
)
from session.router import GuardedRouter
from session.store import SessionStore

router = APIRouter()


def session_response(session: SessionStore, nav: GuardedRouter) -> SessionResponse:
    state = session.state
    return SessionResponse(
        status=state.status.value,
        identity=state.identity,
        profile=state.profile,
        error=str(state.error) if state.error else None,
        location=nav.location,
    )


@router.get("/session", response_model=SessionResponse)
async def get_session_state(
    session: SessionStore = Depends(get_session),
    nav: GuardedRouter = Depends(get_router),
):
    return session_response(session, nav)


@router.post("/auth/google", response_model=SessionResponse)
async def sign_in_with_google(
    body: GoogleSignInRequest,
    session: SessionStore = Depends(get_session),
    nav: GuardedRouter = Depends(get_router),
):
    await session.sign_in_with_google(body.credential)
    await session.settle()
    return session_response(session, nav)


@router.post("/auth/phone", response_model=PhoneCodeResponse)
async def request_phone_code(
    body: PhoneCodeRequest,
    session: SessionStore = Depends(get_session),
):
    verification = await session.sign_in_with_phone(body.phone_number, body.verifier_token)
    return PhoneCodeResponse(
        verification_id=verification.verification_id,
        phone_number=verification.phone_number,
    )


@router.post("/auth/phone/confirm", response_model=SessionResponse)
async def confirm_phone_code(
    body: PhoneConfirmRequest,
    session: SessionStore = Depends(get_session),
    nav: GuardedRouter = Depends(get_router),
):
    await session.confirm_phone_code(body.verification_id, body.code)
    await session.settle()
    return session_response(session, nav)


@router.post("/auth/sign-out", response_model=SessionResponse)
async def sign_out(
    session: SessionStore = Depends(get_session),
    nav: GuardedRouter = Depends(get_router),
):
    await session.sign_out()
    return session_response(session, nav)
