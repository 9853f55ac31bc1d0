from fastapi import FastAPI, Form, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from pydantic_settings import BaseSettings
from typing import List, Optional
from datetime import datetime

import api_routes
from database import supabase
from handlers.sms.dispatcher import IntentDispatcher
from handlers.event_handler import send_friday_summary, notify_backup_golfers


class Settings(BaseSettings):
    """
    App-level settings. Module-level clients (Supabase, Twilio, Redis) read
    their own variables from the same .env.
    """
    app_name: str = "Tee Time Sync API"

    # Set by Vercel; requests then already arrive under /api
    vercel: bool = False

    # Comma-separated dashboard origins
    cors_origins: str = "*"

    sms_test_mode: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
prefix = "" if settings.vercel else "/api"

app = FastAPI(title=settings.app_name, root_path="/api" if settings.vercel else "")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_routes.router, prefix=prefix)


@app.get("/")
async def root():
    return {"message": settings.app_name}


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "sms_test_mode": settings.sms_test_mode,
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.post("/webhook/sms")
async def sms_webhook(From: str = Form(...), Body: str = Form(...), To: Optional[str] = Form(None)):
    """
    Twilio inbound webhook (form-encoded).

    Replies go out through the REST client, so the response body is not TwiML.
    """
    IntentDispatcher().handle_sms(From, Body)
    return {"status": "success"}


# --- Cron (triggered externally) ---

@app.api_route("/cron/friday-closeout", methods=["GET", "POST"])
async def friday_closeout():
    """Text the summary to the managers and close the open event."""
    return send_friday_summary()


@app.api_route("/cron/notify-backups", methods=["GET", "POST"])
async def notify_backups():
    """Invite the backup tier if the open event still has room."""
    return notify_backup_golfers()


# --- SMS simulator ---

class InboxMessage(BaseModel):
    from_number: str
    body: str


@app.get(f"{prefix}/sms-outbox")
async def get_sms_outbox(phone_number: Optional[str] = None):
    """Unread simulator messages, oldest first."""
    query = supabase.table("sms_outbox").select("*").is_("read_at", "null")
    if phone_number:
        query = query.eq("to_number", phone_number)
    return {"messages": query.order("created_at").execute().data or []}


@app.post(f"{prefix}/sms-outbox/{{message_id}}/read")
async def mark_message_read(message_id: str):
    supabase.table("sms_outbox").update({"read_at": datetime.utcnow().isoformat()}).eq("id", message_id).execute()
    return {"status": "ok"}


@app.post(f"{prefix}/sms-inbox")
async def post_sms_inbox(message: InboxMessage, request: Request):
    """
    Feed a fake inbound SMS through the same dispatcher as the webhook.

    Replies are returned inline; with ?dry_run=true they are not sent.
    """
    dry_run = request.query_params.get("dry_run", "false").lower() == "true"
    replies = IntentDispatcher().handle_sms(message.from_number, message.body, dry_run=dry_run)
    return {"status": "success", "replies": replies}


if __name__ == "__main__":
    # Local development: python main.py from backend/
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
