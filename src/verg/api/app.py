"""FastAPI application factory."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from uuid import UUID

from fastapi import FastAPI, HTTPException, Path, Request, status
from fastapi.responses import JSONResponse

from verg.api.models import (
    CalendarDayResponse,
    CalendarResponse,
    CompleteSessionRequest,
    CompleteSessionResponse,
    SessionResponse,
    SettingsResponse,
    SettingsUpdate,
    StartSessionRequest,
    StatsResponse,
    TimerResponse,
)
from verg.app_logging import configure_logging
from verg.containers import AppContainer
from verg.domain.journal import SessionRecord, StorageError
from verg.domain.settings import AppSettings
from verg.domain.timer import TimerPhase, TimerState
from verg.services.gating import UNLIMITED
from verg.services.journal import JournalService
from verg.services.settings import validate_duration
from verg.services.streaks import streak_text

PAYWALL_MESSAGE = "You've used your free sessions. Subscribe to keep writing."
TIMER_NOT_COMPLETE_MESSAGE = "Finish the timer before saving a session."
STORAGE_UNAVAILABLE_MESSAGE = "Storage is unavailable. Please try again."


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    def on_timer_change(state: TimerState) -> None:
        if state.complete:
            logger.info("Writing timer finished after %.0fs", state.total_duration)

    container.timer.on_change = on_timer_change

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        try:
            state_container.streak_service.refresh_streak()
        except StorageError:
            logger.exception("Failed to validate streak at startup")
        try:
            await state_container.subscription.refresh()
        except Exception:
            logger.exception("Failed to refresh subscription status")
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(StorageError)
    async def storage_error_handler(
        request: Request, exc: StorageError
    ) -> JSONResponse:
        logger.error("Storage failure on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": STORAGE_UNAVAILABLE_MESSAGE},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/stats")
    async def get_stats(request: Request) -> StatsResponse:
        """Return streak figures and whether a new session may start."""
        state_container: AppContainer = request.app.state.container
        stats = state_container.streak_service.current_stats()
        gate = state_container.gating_service
        remaining = gate.remaining_free_sessions()
        return StatsResponse(
            current_streak=stats.current_streak,
            longest_streak=stats.longest_streak,
            total_sessions=stats.total_sessions,
            last_session_date=stats.last_session_date,
            has_written_today=state_container.streak_service.has_written_today(),
            streak_text=streak_text(stats.current_streak),
            streak_at_risk=state_container.streak_service.streak_at_risk(),
            sessions_today=state_container.stats_service.sessions_today(),
            can_start_session=gate.can_start(),
            remaining_free_sessions=None if remaining == UNLIMITED else remaining,
        )

    @app.post("/sessions/start")
    async def start_session(
        request: Request, body: StartSessionRequest | None = None
    ) -> TimerResponse:
        """Start the writing timer if the session gate allows it."""
        state_container: AppContainer = request.app.state.container
        gate = state_container.gating_service
        if not gate.can_start():
            gate.log_gating_status()
            raise HTTPException(
                status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=PAYWALL_MESSAGE
            )
        duration = (
            body.duration
            if body is not None and body.duration is not None
            else state_container.settings_service.get_settings().timer_duration
        )
        try:
            validate_duration(duration)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _timer_response(state_container.timer.start(duration))

    @app.get("/timer")
    async def get_timer(request: Request) -> TimerResponse:
        """Return the current countdown snapshot."""
        state_container: AppContainer = request.app.state.container
        return _timer_response(state_container.timer.state)

    @app.post("/timer/pause")
    async def pause_timer(request: Request) -> TimerResponse:
        state_container: AppContainer = request.app.state.container
        return _timer_response(state_container.timer.pause())

    @app.post("/timer/resume")
    async def resume_timer(request: Request) -> TimerResponse:
        state_container: AppContainer = request.app.state.container
        return _timer_response(state_container.timer.resume())

    @app.post("/timer/stop")
    async def stop_timer(request: Request) -> TimerResponse:
        state_container: AppContainer = request.app.state.container
        return _timer_response(state_container.timer.stop())

    @app.post("/timer/reset")
    async def reset_timer(request: Request) -> TimerResponse:
        state_container: AppContainer = request.app.state.container
        return _timer_response(state_container.timer.reset())

    @app.post("/lifecycle/background")
    async def entered_background(request: Request) -> TimerResponse:
        """Acknowledge that the host moved to the background."""
        state_container: AppContainer = request.app.state.container
        logger.debug("Host entered background")
        return _timer_response(state_container.timer.state)

    @app.post("/lifecycle/foreground")
    async def entered_foreground(request: Request) -> TimerResponse:
        """Resynchronize the countdown after the host regains the foreground."""
        state_container: AppContainer = request.app.state.container
        return _timer_response(state_container.timer.resynchronize())

    @app.post("/sessions", status_code=status.HTTP_201_CREATED)
    async def complete_session(
        body: CompleteSessionRequest, request: Request
    ) -> CompleteSessionResponse:
        """Record the finished session with its page photo or a skip."""
        state_container: AppContainer = request.app.state.container
        timer = state_container.timer
        if timer.phase is not TimerPhase.COMPLETE:
            timer.resynchronize()
        if timer.phase is not TimerPhase.COMPLETE:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=TIMER_NOT_COMPLETE_MESSAGE,
            )
        image = None if body.skip_photo else _decode_image(body.image_base64)
        journal = state_container.journal_service
        result = journal.complete_session(max(timer.total_duration, 0.0), image)
        if not result.ok or result.record is None or result.stats is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=result.message,
            )
        timer.reset()
        return CompleteSessionResponse(
            session=_session_response(journal, result.record),
            current_streak=result.stats.current_streak,
            longest_streak=result.stats.longest_streak,
            total_sessions=result.stats.total_sessions,
        )

    @app.get("/sessions")
    async def list_sessions(request: Request) -> list[SessionResponse]:
        """Return recorded sessions, newest first."""
        state_container: AppContainer = request.app.state.container
        journal = state_container.journal_service
        return [_session_response(journal, record) for record in journal.list_sessions()]

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: UUID, request: Request) -> SessionResponse:
        state_container: AppContainer = request.app.state.container
        journal = state_container.journal_service
        record = journal.get_session(session_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return _session_response(journal, record)

    @app.delete("/sessions/{session_id}")
    async def delete_session(session_id: UUID, request: Request) -> dict[str, str]:
        """Delete a session and its page photo."""
        state_container: AppContainer = request.app.state.container
        journal = state_container.journal_service
        if journal.get_session(session_id) is None:
            raise HTTPException(status_code=404, detail="Session not found")
        result = journal.delete_session(session_id)
        if not result.ok:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=result.message,
            )
        return {"status": "deleted"}

    @app.delete("/journal")
    async def clear_journal(request: Request) -> dict[str, str]:
        """Erase all sessions, stats, settings and photos."""
        state_container: AppContainer = request.app.state.container
        state_container.timer.reset()
        result = state_container.journal_service.clear_all_data()
        if not result.ok:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=result.message,
            )
        return {"status": "cleared"}

    @app.get("/calendar/{year}/{month}")
    async def get_calendar(
        request: Request,
        year: int = Path(ge=1, le=9999),
        month: int = Path(ge=1, le=12),
    ) -> CalendarResponse:
        """Return session counts for each day of a month."""
        state_container: AppContainer = request.app.state.container
        stats_service = state_container.stats_service
        return CalendarResponse(
            year=year,
            month=month,
            sessions_in_month=stats_service.sessions_in_month(year, month),
            days=[
                CalendarDayResponse(day=entry.day, session_count=entry.session_count)
                for entry in stats_service.month_grid(year, month)
            ],
        )

    @app.get("/settings")
    async def get_settings(request: Request) -> SettingsResponse:
        state_container: AppContainer = request.app.state.container
        return _settings_response(state_container.settings_service.get_settings())

    @app.patch("/settings")
    async def update_settings(
        body: SettingsUpdate, request: Request
    ) -> SettingsResponse:
        """Apply a partial settings update."""
        state_container: AppContainer = request.app.state.container
        service = state_container.settings_service
        changes = body.model_dump(exclude_none=True)
        try:
            updated = service.update_settings(replace(service.get_settings(), **changes))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _settings_response(updated)

    return app


def _decode_image(image_base64: str | None) -> bytes | None:
    if image_base64 is None:
        return None
    try:
        return base64.b64decode(image_base64, validate=True)
    except binascii.Error as exc:
        raise HTTPException(
            status_code=400, detail="image_base64 is not valid base64"
        ) from exc


def _timer_response(state: TimerState) -> TimerResponse:
    return TimerResponse(
        phase=state.phase.value,
        total_duration=state.total_duration,
        remaining=state.remaining,
        progress=state.progress,
        formatted_time=state.formatted_time,
        is_running=state.running,
        is_complete=state.complete,
    )


def _session_response(journal: JournalService, record: SessionRecord) -> SessionResponse:
    return SessionResponse(
        id=record.id,
        occurred_on=record.occurred_on,
        duration=record.duration,
        image_reference=record.image_reference,
        image_url=journal.image_url(record),
        created_at=record.created_at,
    )


def _settings_response(settings: AppSettings) -> SettingsResponse:
    return SettingsResponse(
        timer_duration=settings.timer_duration,
        sound_enabled=settings.sound_enabled,
        notifications_enabled=settings.notifications_enabled,
        notification_time=settings.notification_time,
        has_seen_onboarding=settings.has_seen_onboarding,
        is_subscribed=settings.is_subscribed,
    )
