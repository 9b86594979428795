from __future__ import annotations

import logging
import random
from datetime import date, datetime, timedelta
from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import storage
from .analytics_engine import compute_analytics
from .calendar_days import date_window, local_today
from .chat_service import handle_chat_message
from .config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    APP_VERSION,
    SECRET_KEY,
    app_timezone,
    hugging_face_api_key,
    hugging_face_api_url,
    inference_timeout,
    is_dev_mode,
    log_level,
    streak_scan_days,
)
from .database import DB_PATH, Base, engine, get_db
from .inference_client import HuggingFaceClient
from .models import User

logging.basicConfig(level=log_level(), format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

AFFIRMATIONS = [
    "You are braver than you believe, stronger than you seem, and smarter than you think.",
    "Every day is a new beginning. Take a deep breath and start again.",
    "You have survived 100% of your worst days. You're doing great.",
    "Progress, not perfection. Every small step counts.",
    "Your mental health is just as important as your physical health.",
    "It's okay to not be okay. It's not okay to give up.",
    "You are worthy of love, kindness, and compassion - especially from yourself.",
    "Healing isn't linear. Be patient with yourself.",
    "You have the strength to handle whatever comes your way.",
    "Your feelings are valid, and you deserve support.",
]


class TokenResponse(BaseModel):
    access_token: str
    token_type: str


class RegisterRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    email: str
    created_at: datetime


class MoodEntryCreate(BaseModel):
    mood: Literal["amazing", "good", "okay", "down", "terrible"]
    mood_score: int = Field(ge=1, le=10)
    journal_entry: Optional[str] = None


class MoodEntryResponse(BaseModel):
    id: int
    mood: str
    mood_score: int
    journal_entry: Optional[str] = None
    created_at: datetime


class MoodAnalyticsResponse(BaseModel):
    entries: List[MoodEntryResponse]
    average_mood: float
    total_entries: int
    mood_trend: str
    best_day: str
    start: datetime
    end: datetime


class ChatRequest(BaseModel):
    message: str = ""


class SentimentPayload(BaseModel):
    label: str
    confidence: float


class ChatResponse(BaseModel):
    message: str
    is_crisis: bool
    sentiment: Optional[SentimentPayload] = None


class ChatMessageResponse(BaseModel):
    id: int
    message: str
    is_user: bool
    sentiment: Optional[str] = None
    created_at: datetime


class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None


class HabitResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    streak: int = 0


class HabitCompletionResponse(BaseModel):
    id: int
    habit_id: int
    completed_at: datetime


app = FastAPI(title="SerenityMind API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.exception_handler(SQLAlchemyError)
def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Storage error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Storage error"})


def build_inference_client() -> HuggingFaceClient:
    return HuggingFaceClient(
        api_key=hugging_face_api_key(),
        base_url=hugging_face_api_url(),
        timeout=inference_timeout(),
    )


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)
    app.state.inference_client = build_inference_client()
    logger.info("SerenityMind API %s started (db=%s)", APP_VERSION, DB_PATH)


def get_inference_client(request: Request) -> HuggingFaceClient:
    client = getattr(request.app.state, "inference_client", None)
    if client is None:
        client = build_inference_client()
        request.app.state.inference_client = client
    return client


def get_rng() -> random.Random:
    return random.Random()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError as exc:
        raise credentials_exception from exc

    user = db.query(User).filter(User.id == int(user_id)).first()
    if user is None:
        raise credentials_exception
    return user


def daily_affirmation(day: date) -> str:
    return AFFIRMATIONS[day.toordinal() % len(AFFIRMATIONS)]


def to_mood_response(entry) -> MoodEntryResponse:
    return MoodEntryResponse(
        id=entry.id,
        mood=entry.mood,
        mood_score=entry.mood_score,
        journal_entry=entry.journal_entry,
        created_at=entry.created_at,
    )


@app.get("/health")
def health() -> dict:
    db_status = "ok"
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        db_status = "error"
    payload = {
        "status": "ok",
        "version": APP_VERSION,
        "db": db_status,
        "dev_mode": is_dev_mode(),
    }
    if is_dev_mode():
        payload["db_path"] = DB_PATH
    return payload


@app.get("/safety/resources")
def safety_resources() -> dict:
    return {
        "us": [
            {"label": "988 Lifeline", "note": "Call or text 988 in the U.S. for immediate support."},
            {"label": "Crisis Text Line", "note": "Text HOME to 741741."},
            {"label": "Emergency", "note": "If you are in immediate danger, call 911 or local emergency services."},
        ],
        "international": [
            "International Association for Suicide Prevention: https://www.iasp.info/resources/Crisis_Centres/",
            "If you are outside the U.S., contact local emergency services or a local crisis line.",
        ],
        "safety_note": "This app is not medical advice. If you feel unsafe, seek immediate support.",
    }


@app.post("/auth/register", response_model=TokenResponse)
def register_user(payload: RegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    existing = db.query(User).filter(User.email == payload.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    if len(payload.password.encode("utf-8")) > 72:
        raise HTTPException(
            status_code=400,
            detail="Password too long (bcrypt limit is 72 bytes). Use a shorter password.",
        )
    user = User(email=payload.email, hashed_password=get_password_hash(payload.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return TokenResponse(access_token=token, token_type="bearer")


@app.post("/auth/login", response_model=TokenResponse)
def login_user(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
) -> TokenResponse:
    user = db.query(User).filter(User.email == form_data.username).first()
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Invalid email or password")
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return TokenResponse(access_token=token, token_type="bearer")


@app.get("/auth/user", response_model=UserResponse)
def auth_user(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse(id=user.id, email=user.email, created_at=user.created_at)


@app.post("/mood-entries", response_model=MoodEntryResponse)
def create_mood_entry(
    payload: MoodEntryCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MoodEntryResponse:
    journal = (payload.journal_entry or "").strip() or None
    entry = storage.create_mood_entry(db, user.id, payload.mood, payload.mood_score, journal)
    return to_mood_response(entry)


@app.get("/mood-entries", response_model=List[MoodEntryResponse])
def list_mood_entries(
    limit: int = Query(10, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[MoodEntryResponse]:
    return [to_mood_response(e) for e in storage.get_user_mood_entries(db, user.id, limit)]


@app.get("/mood-analytics", response_model=MoodAnalyticsResponse)
def mood_analytics(
    days: int = Query(7, ge=1, le=365),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MoodAnalyticsResponse:
    now = datetime.utcnow()
    start, end = date_window(days, now)
    entries = storage.get_mood_entries_in_range(db, user.id, start, end)
    analytics = compute_analytics(entries, now, app_timezone())
    return MoodAnalyticsResponse(
        entries=[to_mood_response(e) for e in entries],
        average_mood=analytics.average_mood,
        total_entries=analytics.total_entries,
        mood_trend=analytics.mood_trend,
        best_day=analytics.best_day,
        start=start,
        end=end,
    )


@app.post("/chat", response_model=ChatResponse)
def chat(
    payload: ChatRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: HuggingFaceClient = Depends(get_inference_client),
    rng: random.Random = Depends(get_rng),
) -> ChatResponse:
    message = payload.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")
    reply = handle_chat_message(db, user.id, message, client, rng)
    sentiment = None
    if reply.sentiment is not None:
        sentiment = SentimentPayload(label=reply.sentiment.label, confidence=reply.sentiment.confidence)
    return ChatResponse(message=reply.message, is_crisis=reply.is_crisis, sentiment=sentiment)


@app.get("/chat/history", response_model=List[ChatMessageResponse])
def chat_history(
    limit: int = Query(20, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[ChatMessageResponse]:
    messages = storage.get_user_chat_messages(db, user.id, limit)
    return [
        ChatMessageResponse(
            id=m.id,
            message=m.message,
            is_user=m.is_user,
            sentiment=m.sentiment,
            created_at=m.created_at,
        )
        for m in reversed(messages)
    ]


@app.post("/habits", response_model=HabitResponse)
def create_habit(
    payload: HabitCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HabitResponse:
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Habit name cannot be empty")
    habit = storage.create_habit(db, user.id, name, payload.description)
    return HabitResponse(
        id=habit.id,
        name=habit.name,
        description=habit.description,
        is_active=habit.is_active,
        created_at=habit.created_at,
    )


@app.get("/habits", response_model=List[HabitResponse])
def list_habits(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[HabitResponse]:
    tz = app_timezone()
    habits = storage.get_user_habits(db, user.id)
    streaks = storage.get_habit_streaks(db, user.id, local_today(tz), tz, streak_scan_days())
    return [
        HabitResponse(
            id=h.id,
            name=h.name,
            description=h.description,
            is_active=h.is_active,
            created_at=h.created_at,
            streak=streaks.get(h.id, 0),
        )
        for h in habits
    ]


@app.post("/habits/{habit_id}/complete", response_model=HabitCompletionResponse)
def complete_habit(
    habit_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HabitCompletionResponse:
    habit = storage.get_user_habit(db, user.id, habit_id)
    if habit is None:
        raise HTTPException(status_code=404, detail="Habit not found")
    tz = app_timezone()
    if storage.get_habit_completions(db, user.id, habit.id, local_today(tz), tz):
        raise HTTPException(status_code=400, detail="Habit already completed today")
    completion = storage.complete_habit(db, user.id, habit.id)
    return HabitCompletionResponse(
        id=completion.id,
        habit_id=completion.habit_id,
        completed_at=completion.completed_at,
    )


@app.delete("/habits/{habit_id}", response_model=HabitResponse)
def deactivate_habit(
    habit_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> HabitResponse:
    habit = storage.get_user_habit(db, user.id, habit_id)
    if habit is None:
        raise HTTPException(status_code=404, detail="Habit not found")
    habit = storage.deactivate_habit(db, habit)
    return HabitResponse(
        id=habit.id,
        name=habit.name,
        description=habit.description,
        is_active=habit.is_active,
        created_at=habit.created_at,
    )


@app.get("/affirmations/daily")
def affirmations_daily(user: User = Depends(get_current_user)) -> dict:
    return {"affirmation": daily_affirmation(local_today(app_timezone()))}
