from fastapi import FastAPI, Depends, Form, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List

from activity_tracker.database import engine, get_db, Base
from activity_tracker import models  # Import all models to register them with Base
from activity_tracker.schemas import (
    AdminUserEntry, CompletionRequest, CompletionResult, DashboardResponse, DeliveryResult,
    GlobalStreakResponse, LeaderboardEntry, StreakSettingsUpdate, TaskSelectionUpdate,
    UserProfileResponse
)
from activity_tracker.auth import verify_api_key, get_current_user, require_admin
from activity_tracker.constants import (
    CAREER_TASK_OPTIONS, PERSONAL_TASK_OPTIONS, SOURCE_INTERACTIVE, CORS_ALLOWED_ORIGINS,
    DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV
)
from activity_tracker.exceptions import ValidationError, UserNotFoundError, StorageError
from activity_tracker.repositories.user_repository import UserRepository
from activity_tracker.services.admin_service import AdminService
from activity_tracker.services.command_service import CommandService
from activity_tracker.services.completion_service import CompletionService
from activity_tracker.services.dashboard_service import DashboardService
from activity_tracker.services.date_service import Clock
from activity_tracker.services.messaging_service import MessagingClient, ReminderService
from activity_tracker.services.scheduler_service import start_scheduler, stop_scheduler
from activity_tracker.services.user_service import UserService

LOG_DIR = os.getenv("ACTIVITY_TRACKER_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("ACTIVITY_TRACKER_LOG_FILE", "app.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger("activity_tracker")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Activity Tracker API",
    description="Daily activity check-ins with per-task and global streaks",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

clock = Clock()
messaging_client = MessagingClient()


def get_clock() -> Clock:
    return clock


def get_messaging() -> MessagingClient:
    return messaging_client


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc), "field": exc.field})


@app.exception_handler(UserNotFoundError)
async def user_not_found_handler(request: Request, exc: UserNotFoundError):
    return JSONResponse(status_code=404, content={"detail": "User not found"})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Server error"})


@app.on_event("startup")
async def startup_event():
    logger.info(f"Activity Tracker API started. Logging to: {log_path}")
    if not messaging_client.enabled:
        logger.warning("Twilio not configured - WhatsApp messages will be mocked")
    start_scheduler()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Activity Tracker API")
    stop_scheduler()


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "Activity Tracker API", "status": "active"}


@app.get("/api/health")
async def health(db: Session = Depends(get_db), messaging: MessagingClient = Depends(get_messaging)):
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError:
        database = "disconnected"
    return {
        "status": "OK",
        "database": database,
        "whatsapp": messaging.enabled,
        "timestamp": datetime.now().isoformat()
    }


# ===== TASK ENDPOINTS =====

@app.get("/api/tasks/options", dependencies=[Depends(verify_api_key)])
async def get_task_options():
    """Get available built-in tasks grouped by category"""
    return {
        "career": [{"id": task_id, "name": name, "icon": icon}
                   for task_id, (name, icon) in CAREER_TASK_OPTIONS.items()],
        "personal": [{"id": task_id, "name": name, "icon": icon}
                     for task_id, (name, icon) in PERSONAL_TASK_OPTIONS.items()],
    }


@app.get("/api/tasks/dashboard", response_model=DashboardResponse, dependencies=[Depends(verify_api_key)])
async def get_dashboard(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Get dashboard rollups, streaks and the 30-day trend"""
    return DashboardService(db).get_dashboard(user.id, clock.today())


@app.put("/api/tasks/settings", dependencies=[Depends(verify_api_key)])
async def update_streak_settings(
    settings_update: StreakSettingsUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update minimum completed tasks per day for the global streak"""
    UserService(db).update_min_tasks_required(user.id, settings_update.min_tasks_required)
    return {"success": True, "min_tasks_required": settings_update.min_tasks_required}


@app.post("/api/tasks/{task_id}/complete", response_model=CompletionResult, dependencies=[Depends(verify_api_key)])
async def complete_task(
    task_id: str,
    request: CompletionRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Mark a task completed (or not) for today"""
    return CompletionService(db).apply_completion(
        user.id, task_id, clock.today(), request.completed, SOURCE_INTERACTIVE, request.value
    )


# ===== USER ENDPOINTS =====

@app.put("/api/users/tasks", dependencies=[Depends(verify_api_key)])
async def update_selected_tasks(
    selection: TaskSelectionUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Replace selected tasks"""
    updated = UserService(db).update_task_selection(user.id, selection.model_dump())
    return {"success": True, "selected_tasks": updated.get_task_selection()}


@app.get("/api/users/profile", response_model=UserProfileResponse, dependencies=[Depends(verify_api_key)])
async def get_profile(user: models.User = Depends(get_current_user)):
    """Get user profile"""
    return UserProfileResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name or "",
        email=user.email,
        phone=user.phone or "",
        is_admin=bool(user.is_admin),
        selected_tasks=user.get_task_selection(),
        streak_settings={"min_tasks_required": user.min_tasks_required},
        global_streak=GlobalStreakResponse(
            current_streak=user.global_current_streak or 0,
            best_streak=user.global_best_streak or 0,
            last_completed_date=user.global_last_completed_date
        )
    )


# ===== ADMIN ENDPOINTS =====

@app.get("/api/admin/users", response_model=List[AdminUserEntry], dependencies=[Depends(verify_api_key)])
async def admin_list_users(
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Get all users with today's completions and streak totals"""
    return AdminService(db).list_users(clock.today())


@app.get("/api/admin/leaderboard", response_model=List[LeaderboardEntry], dependencies=[Depends(verify_api_key)])
async def admin_leaderboard(
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get users ranked by total current streak"""
    return AdminService(db).get_leaderboard()


# ===== WHATSAPP ENDPOINTS =====

@app.post("/api/whatsapp/webhook")
async def whatsapp_webhook(
    sender: str = Form(default="", alias="From"),
    body: str = Form(default="", alias="Body"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    messaging: MessagingClient = Depends(get_messaging)
):
    """Inbound WhatsApp message (Twilio webhook); always answers with an empty 200"""
    logger.info(f"[WhatsApp] From: {sender}, Body: {body}")
    if sender and body:
        try:
            CommandService(db, messaging).interpret_message(sender, body, clock.today())
        except UserNotFoundError:
            # Registration prompt already sent; answer 200 so the provider does not retry
            logger.info(f"[WhatsApp] Ignored message from unregistered {sender}")
    return Response(status_code=status.HTTP_200_OK, content="")


@app.post("/api/whatsapp/send-reminders", dependencies=[Depends(verify_api_key)])
async def send_reminders(
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
    messaging: MessagingClient = Depends(get_messaging)
):
    """Send the check-in poll to all users"""
    count = ReminderService(db, messaging).send_reminders_to_all()
    return {"success": True, "message": f"Reminders sent to {count} users"}


@app.post("/api/whatsapp/send-poll/{user_id}", dependencies=[Depends(verify_api_key)])
async def send_poll(
    user_id: int,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db),
    messaging: MessagingClient = Depends(get_messaging)
):
    """Send the check-in poll to one user"""
    target = UserRepository.get_by_id(db, user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    if not target.phone:
        raise HTTPException(status_code=400, detail="User has no phone number")

    result: DeliveryResult = ReminderService(db, messaging).send_daily_poll(target)
    if result is None:
        raise HTTPException(status_code=400, detail="User has no selected tasks")
    return {"success": result.success, "result": result}


@app.get("/api/whatsapp/status", dependencies=[Depends(verify_api_key)])
async def whatsapp_status(
    request: Request,
    admin: models.User = Depends(require_admin),
    messaging: MessagingClient = Depends(get_messaging)
):
    """Get WhatsApp configuration status"""
    return {
        "enabled": messaging.enabled,
        "webhook_url": str(request.url_for("whatsapp_webhook"))
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("activity_tracker.main:app", host="0.0.0.0", port=8000, reload=False)
