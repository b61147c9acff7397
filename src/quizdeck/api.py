"""FastAPI HTTP layer — quiz authoring, admin login and quiz play."""

from __future__ import annotations

import logging
import os
from typing import Any

from fastapi import Body, Depends, FastAPI, File, Header, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from quizdeck.auth import (
    AdminIdentityProvider,
    AdminUser,
    AuthContext,
    InvalidCredentialsError,
    UnauthorizedError,
)
from quizdeck.media import MediaUploader, MediaUploadError, UploadPendingError, UploadTracker
from quizdeck.play import PlaySessionNotFoundError, PlaySessions
from quizdeck.quiz_models import QuizInput
from quizdeck.quiz_store import (
    QuizNotFoundError,
    QuizStore,
    QuizStoreError,
    SlugConflictError,
)
from quizdeck.seed import seed_store
from quizdeck.session import EmptyQuizError, QuizSession, SessionInvariantError, Transition
from quizdeck.validation import validate_quiz_data

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Quizdeck API",
    description="Multiple-choice quiz authoring and play",
    version="0.1.0",
)

SAFE_LANDING = "/"

quiz_store = QuizStore()
auth = AuthContext(AdminIdentityProvider())
uploader = MediaUploader()
uploads = UploadTracker()
sessions = PlaySessions()

if os.getenv("QUIZ_SEED") == "1":
    seed_store(quiz_store)

if not uploader.configured:
    logger.warning("MEDIA_CLOUD_NAME/MEDIA_UPLOAD_PRESET not set. Media upload is unavailable.")


# --- Request models ---


class LoginRequest(BaseModel):
    email: str
    password: str


class SelectRequest(BaseModel):
    index: int


# --- Helpers ---


def _bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return authorization[7:].strip()


def require_admin(authorization: str | None = Header(default=None)) -> AdminUser:
    user = auth.user_for_token(_bearer_token(authorization))
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user


def _load_error(detail: str, status_code: int = 404) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"detail": detail, "redirect": SAFE_LANDING}
    )


def _parse_candidate(payload: dict[str, Any]) -> QuizInput | JSONResponse:
    errors = validate_quiz_data(payload)
    if not errors:
        try:
            return QuizInput.model_validate(payload)
        except ValidationError as e:
            errors = [err["msg"] for err in e.errors()]
    return JSONResponse(status_code=422, content={"detail": errors[0], "errors": errors})


def _dump(quiz) -> dict:
    return quiz.model_dump(mode="json", by_alias=True)


def _transition_response(transition: Transition, session: QuizSession) -> dict:
    if not transition.ok:
        raise HTTPException(status_code=409, detail=transition.reason)
    return {"ok": True, "state": session.snapshot()}


@app.get("/health")
def health():
    return {"status": "ok"}


# --- Auth endpoints ---


@app.post("/api/auth/login")
def login(req: LoginRequest):
    """Sign in as the admin and receive a bearer token."""
    try:
        token = auth.login(req.email, req.password)
    except UnauthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return {"token": token, "user": auth.user_for_token(token).model_dump()}


@app.post("/api/auth/logout")
def logout(authorization: str | None = Header(default=None), _=Depends(require_admin)):
    auth.logout(_bearer_token(authorization))
    return {"status": "logged_out"}


@app.get("/api/auth/me")
def me(user: AdminUser = Depends(require_admin)):
    return {"user": user.model_dump(), "is_authorized": True}


# --- Quiz endpoints ---


@app.get("/api/quizzes")
def list_quizzes():
    """List all quizzes, newest first."""
    try:
        return [s.model_dump(mode="json") for s in quiz_store.fetch_all()]
    except QuizStoreError as e:
        logger.error("Listing quizzes failed: %s", e)
        raise HTTPException(status_code=503, detail="Failed to fetch quizzes")


@app.get("/api/quizzes/slug/{slug}")
def get_quiz_by_slug(slug: str):
    try:
        quiz = quiz_store.fetch_by_slug(slug)
    except QuizStoreError as e:
        logger.error("Loading quiz '%s' failed: %s", slug, e)
        return _load_error("Failed to fetch quiz", status_code=503)
    if quiz is None:
        return _load_error("Quiz not found")
    return _dump(quiz)


@app.post("/api/quizzes/validate")
def validate_quiz(payload: dict[str, Any] = Body(...), _=Depends(require_admin)):
    """Check a candidate quiz without saving it."""
    errors = validate_quiz_data(payload)
    return {"valid": not errors, "errors": errors}


@app.get("/api/quizzes/{quiz_id}")
def get_quiz(quiz_id: str, _=Depends(require_admin)):
    try:
        quiz = quiz_store.fetch_by_id(quiz_id)
    except QuizStoreError as e:
        logger.error("Loading quiz %s failed: %s", quiz_id, e)
        return _load_error("Failed to fetch quiz", status_code=503)
    if quiz is None:
        return _load_error("Quiz not found")
    return _dump(quiz)


@app.post("/api/quizzes", status_code=201)
def create_quiz(payload: dict[str, Any] = Body(...), _=Depends(require_admin)):
    parsed = _parse_candidate(payload)
    if isinstance(parsed, JSONResponse):
        return parsed
    try:
        return _dump(quiz_store.create(parsed))
    except SlugConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except QuizStoreError as e:
        logger.error("Creating quiz failed: %s", e)
        raise HTTPException(status_code=503, detail="Failed to create quiz")


@app.put("/api/quizzes/{quiz_id}")
def update_quiz(quiz_id: str, payload: dict[str, Any] = Body(...), _=Depends(require_admin)):
    try:
        uploads.ensure_idle(quiz_id)
    except UploadPendingError as e:
        raise HTTPException(status_code=409, detail=str(e))

    parsed = _parse_candidate(payload)
    if isinstance(parsed, JSONResponse):
        return parsed
    try:
        return _dump(quiz_store.update(quiz_id, parsed))
    except QuizNotFoundError:
        return _load_error("Quiz not found")
    except SlugConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except QuizStoreError as e:
        logger.error("Updating quiz %s failed: %s", quiz_id, e)
        raise HTTPException(status_code=503, detail="Failed to update quiz")


@app.delete("/api/quizzes/{quiz_id}")
def delete_quiz(quiz_id: str, _=Depends(require_admin)):
    try:
        quiz_store.delete(quiz_id)
    except OSError as e:
        logger.error("Deleting quiz %s failed: %s", quiz_id, e)
        raise HTTPException(status_code=503, detail="Failed to delete quiz")
    return {"status": "deleted"}


@app.post("/api/quizzes/{quiz_id}/media/{question_index}")
async def upload_media(
    quiz_id: str,
    question_index: int,
    file: UploadFile = File(...),
    _=Depends(require_admin),
):
    """Upload media for one question; the quiz cannot be saved until it completes."""
    if question_index < 0:
        raise HTTPException(status_code=400, detail="Invalid question index")
    try:
        quiz = quiz_store.fetch_by_id(quiz_id)
    except QuizStoreError as e:
        logger.error("Loading quiz %s for upload failed: %s", quiz_id, e)
        return _load_error("Failed to fetch quiz", status_code=503)
    if quiz is None:
        return _load_error("Quiz not found")
    try:
        uploads.begin(quiz_id, question_index)
    except UploadPendingError as e:
        raise HTTPException(status_code=409, detail=str(e))

    def on_progress(sent: int, total: int) -> None:
        logger.debug("Upload %s/%d: %d/%d bytes", quiz_id, question_index, sent, total)

    try:
        content = await file.read()
        url = await uploader.upload(
            file.filename or "upload",
            content,
            file.content_type or "application/octet-stream",
            on_progress=on_progress,
        )
    except MediaUploadError as e:
        raise HTTPException(status_code=502, detail=str(e))
    finally:
        uploads.release(quiz_id)
    return {"question_index": question_index, "url": url}


# --- Play endpoints ---


@app.post("/api/play/{slug}")
def start_play(slug: str):
    """Load a quiz once and start a play session for it."""
    try:
        quiz = quiz_store.fetch_by_slug(slug)
    except QuizStoreError as e:
        logger.error("Loading quiz '%s' for play failed: %s", slug, e)
        return _load_error("Failed to fetch quiz", status_code=503)
    if quiz is None:
        return _load_error("Quiz not found")

    if not QuizSession.is_playable(quiz):
        return {"playable": False, "session_id": None, "slug": quiz.slug, "title": quiz.title}
    try:
        session_id, session = sessions.start(quiz)
    except (EmptyQuizError, SessionInvariantError) as e:
        logger.error("Quiz '%s' cannot be played: %s", slug, e)
        return _load_error("Quiz cannot be played", status_code=409)
    return {"playable": True, "session_id": session_id, "state": session.snapshot()}


def _missing_session(session_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Session not found: {session_id}")


@app.get("/api/play/sessions/{session_id}")
def get_play_state(session_id: str):
    try:
        with sessions.locked(session_id) as session:
            return {"state": session.snapshot()}
    except PlaySessionNotFoundError:
        raise _missing_session(session_id)


@app.post("/api/play/sessions/{session_id}/select")
def select_option(session_id: str, req: SelectRequest):
    try:
        with sessions.locked(session_id) as session:
            try:
                transition = session.select_option(req.index)
            except SessionInvariantError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return _transition_response(transition, session)
    except PlaySessionNotFoundError:
        raise _missing_session(session_id)


@app.post("/api/play/sessions/{session_id}/advance")
def advance(session_id: str):
    try:
        with sessions.locked(session_id) as session:
            return _transition_response(session.advance(), session)
    except PlaySessionNotFoundError:
        raise _missing_session(session_id)


@app.post("/api/play/sessions/{session_id}/restart")
def restart(session_id: str):
    try:
        with sessions.locked(session_id) as session:
            return _transition_response(session.restart(), session)
    except PlaySessionNotFoundError:
        raise _missing_session(session_id)


@app.delete("/api/play/sessions/{session_id}")
def end_play(session_id: str):
    sessions.end(session_id)
    return {"status": "ended"}


def main():
    """Run the API server."""
    import uvicorn

    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
