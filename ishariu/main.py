"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the iShariu account and course
backend. Controllers are intentionally thin: they accept requests,
delegate to services, and translate service outcomes into responses
(not found, forbidden, success/failure payloads).

Endpoints implemented:
- POST /account/register
- POST /account/signin
- GET  /account/me
- GET  /user
- GET  /user/{id}
- POST /user/{id}
- GET  /user/{id}/settings
- POST /account/changepassword
- POST /account/updatesetting
- POST /account/deleteaccount
- GET  /courses
- GET  /courses/bestsellers
- GET  /courses/search
- GET  /courses/{id}
- POST /courses
- POST /courses/{id}/enroll
"""

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
import os
import json
import logging
import time
import uuid
from typing import Optional
from . import services, models
from .auth import get_current_user
from .config import settings
from .database import get_course_store, get_user_store
from .repositories import RecordStore, StoreError
from .schemas import (
    ChangePasswordIn,
    CourseIn,
    CourseOut,
    DeleteAccountIn,
    ProfileOut,
    ProfileUpdateIn,
    RegisterIn,
    ResultOut,
    SignInIn,
    TokenOut,
    UpdateSettingIn,
    UserOut,
)

app = FastAPI(title="iShariu API")
logger = logging.getLogger("ishariu.api")
if not logger.handlers:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        json.dumps(
            {
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
            ensure_ascii=True,
        ),
    )
    return response


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=503, content={"detail": "database unavailable"})


def _user_out(user: models.User) -> UserOut:
    return UserOut(**user.model_dump())


def _course_out(course: models.Course) -> CourseOut:
    return CourseOut(**course.model_dump())


def _accounts(users: RecordStore, courses: RecordStore) -> services.AccountService:
    return services.AccountService(users, courses)


@app.post('/account/register')
def register(payload: RegisterIn, users: RecordStore = Depends(get_user_store), courses: RecordStore = Depends(get_course_store)):
    """Register a new user; 409 if the username is taken."""
    user = _accounts(users, courses).register(payload.username, payload.password, payload.email)
    if user is None:
        raise HTTPException(status_code=409, detail='username already taken')
    return {'id': user.id, 'username': user.username}


@app.post('/account/signin', response_model=TokenOut)
def sign_in(payload: SignInIn, users: RecordStore = Depends(get_user_store), courses: RecordStore = Depends(get_course_store)):
    """Authenticate a user and return a short-lived JWT token.

    The returned token contains `user_id` and `role` and is signed using
    the configured JWT secret.
    """
    token = _accounts(users, courses).authenticate(payload.username, payload.password)
    if not token:
        raise HTTPException(status_code=401, detail='invalid credentials')
    logger.info("sign_in username=%s", payload.username)
    return {'access_token': token}


@app.get('/account/me', response_model=UserOut)
def me(user: models.User = Depends(get_current_user)):
    return _user_out(user)


def _profile_out(user_id: str, users: RecordStore, courses: RecordStore) -> ProfileOut:
    profile = _accounts(users, courses).get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail='user not found')
    return ProfileOut(
        user=_user_out(profile['user']),
        created_courses=[_course_out(c) for c in profile['created_courses']],
        enrolled_courses=[_course_out(c) for c in profile['enrolled_courses']],
    )


@app.get('/user', response_model=ProfileOut)
def own_profile(
    current: models.User = Depends(get_current_user),
    users: RecordStore = Depends(get_user_store),
    courses: RecordStore = Depends(get_course_store),
):
    """Profile of the signed-in user, for callers that give no id."""
    return _profile_out(current.id, users, courses)


@app.get('/user/{user_id}', response_model=ProfileOut)
def user_profile(user_id: str, users: RecordStore = Depends(get_user_store), courses: RecordStore = Depends(get_course_store)):
    """Public profile with created and enrolled courses resolved."""
    return _profile_out(user_id, users, courses)


@app.post('/user/{user_id}', response_model=UserOut)
def update_profile(
    user_id: str,
    changes: ProfileUpdateIn,
    current: models.User = Depends(get_current_user),
    users: RecordStore = Depends(get_user_store),
    courses: RecordStore = Depends(get_course_store),
):
    """Update the caller's own profile; other users' profiles are forbidden."""
    try:
        user = _accounts(users, courses).update_profile(current.id, user_id, changes.model_dump())
    except PermissionError:
        raise HTTPException(status_code=403, detail='forbidden')
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if user is None:
        raise HTTPException(status_code=404, detail='user not found')
    return _user_out(user)


@app.get('/user/{user_id}/settings', response_model=UserOut)
def user_settings(user_id: str, current: models.User = Depends(get_current_user), users: RecordStore = Depends(get_user_store)):
    try:
        services.ensure_owner(current.id, user_id)
    except PermissionError:
        raise HTTPException(status_code=403, detail='forbidden')
    user = users.fetch_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail='user not found')
    return _user_out(user)


@app.post('/account/changepassword', response_model=ResultOut, response_model_exclude_none=True)
def change_password(
    payload: ChangePasswordIn,
    current: models.User = Depends(get_current_user),
    users: RecordStore = Depends(get_user_store),
    courses: RecordStore = Depends(get_course_store),
):
    result = _accounts(users, courses).change_password(current.id, payload.current_password, payload.new_password)
    if result is None:
        raise HTTPException(status_code=404, detail='user not found')
    return result


@app.post('/account/updatesetting', response_model=ResultOut, response_model_exclude_none=True)
def update_setting(
    payload: UpdateSettingIn,
    current: models.User = Depends(get_current_user),
    users: RecordStore = Depends(get_user_store),
    courses: RecordStore = Depends(get_course_store),
):
    try:
        user = _accounts(users, courses).update_setting(current.id, payload.setting_name, payload.setting_value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if user is None:
        raise HTTPException(status_code=404, detail='user not found')
    return {'success': True}


@app.post('/account/deleteaccount', response_model=ResultOut, response_model_exclude_none=True)
def delete_account(
    payload: DeleteAccountIn,
    current: models.User = Depends(get_current_user),
    users: RecordStore = Depends(get_user_store),
    courses: RecordStore = Depends(get_course_store),
):
    result = _accounts(users, courses).delete_account(current.id, payload.password)
    if result is None:
        raise HTTPException(status_code=404, detail='user not found')
    if result['success']:
        logger.info("account_deleted user_id=%s", current.id)
    return result


@app.get('/courses')
def list_courses(courses: RecordStore = Depends(get_course_store), users: RecordStore = Depends(get_user_store)):
    return [_course_out(c) for c in services.CourseService(courses, users).list_courses()]


@app.get('/courses/bestsellers')
def best_sellers(courses: RecordStore = Depends(get_course_store), users: RecordStore = Depends(get_user_store)):
    """Top three courses by revenue generated."""
    return [_course_out(c) for c in services.CourseService(courses, users).best_sellers()]


@app.get('/courses/search')
def search_courses(
    title: Optional[str] = None,
    category: Optional[str] = None,
    courses: RecordStore = Depends(get_course_store),
    users: RecordStore = Depends(get_user_store),
):
    """Search by title substring and/or exact category; at most 10 results."""
    found = services.CourseService(courses, users).search(title=title, category=category)
    return [_course_out(c) for c in found]


@app.get('/courses/{course_id}', response_model=CourseOut)
def get_course(course_id: str, courses: RecordStore = Depends(get_course_store), users: RecordStore = Depends(get_user_store)):
    course = services.CourseService(courses, users).get_course(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail='course not found')
    return _course_out(course)


@app.post('/courses', response_model=CourseOut)
def create_course(
    payload: CourseIn,
    current: models.User = Depends(get_current_user),
    courses: RecordStore = Depends(get_course_store),
    users: RecordStore = Depends(get_user_store),
):
    course = services.CourseService(courses, users).create_course(current.id, payload.model_dump())
    if course is None:
        raise HTTPException(status_code=404, detail='user not found')
    return _course_out(course)


@app.post('/courses/{course_id}/enroll', response_model=CourseOut)
def enroll(
    course_id: str,
    current: models.User = Depends(get_current_user),
    courses: RecordStore = Depends(get_course_store),
    users: RecordStore = Depends(get_user_store),
):
    course = services.CourseService(courses, users).enroll(current.id, course_id)
    if course is None:
        raise HTTPException(status_code=404, detail='course not found')
    return _course_out(course)


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
