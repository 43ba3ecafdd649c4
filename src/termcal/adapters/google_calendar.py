"""Google Calendar API adapter."""

import logging
from datetime import date, datetime
from pathlib import Path

from termcal.core.calendar import (
    AccessRole,
    AllDay,
    CalendarSource,
    EventRecord,
    Timed,
    Timing,
    sort_calendars,
)
from termcal.errors import AuthenticationError, ParseError, ProviderError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]


def parse_timing(start_raw: dict, end_raw: dict) -> Timing:
    """Build a Timing from the API's start/end objects."""
    try:
        if "date" in start_raw:
            start = date.fromisoformat(start_raw["date"])
            end = date.fromisoformat(end_raw["date"]) if "date" in end_raw else start
            return AllDay(start, end)
        if "dateTime" in start_raw:
            start_dt = datetime.fromisoformat(start_raw["dateTime"].replace("Z", "+00:00"))
            end_value = end_raw.get("dateTime")
            end_dt = datetime.fromisoformat(end_value.replace("Z", "+00:00")) if end_value else start_dt
            return Timed(start_dt, end_dt)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Malformed event time {start_raw!r}: {e}") from e
    raise ParseError(f"Event has neither date nor dateTime: {start_raw!r}")


def timing_body(timing: Timing) -> dict:
    """API start/end fields for a Timing. The unused kind is cleared."""
    if isinstance(timing, AllDay):
        return {
            "start": {"date": timing.start_date.isoformat(), "dateTime": None},
            "end": {"date": timing.end_date.isoformat(), "dateTime": None},
        }
    return {
        "start": {"dateTime": timing.start.isoformat(), "date": None},
        "end": {"dateTime": timing.end.isoformat(), "date": None},
    }


def to_event_record(item: dict, calendar_id: str) -> EventRecord:
    return EventRecord(
        id=item.get("id", ""),
        calendar_id=calendar_id,
        summary=item.get("summary", ""),
        location=item.get("location", ""),
        description=item.get("description", ""),
        timing=parse_timing(item.get("start", {}), item.get("end", {})),
    )


def to_calendar_source(entry: dict) -> CalendarSource:
    return CalendarSource(
        id=entry["id"],
        display_name=entry.get("summaryOverride") or entry.get("summary", ""),
        selected=bool(entry.get("selected", False)),
        access_role=AccessRole.parse(entry.get("accessRole")),
        description=entry.get("description", ""),
    )


class GoogleCalendarProvider:
    """
    Google Calendar API adapter.

    Implements CalendarProvider protocol. A fresh service is built per call
    because the underlying HTTP client is not safe to share across threads.
    """

    def __init__(self, config_folder: str, client_secret_file: str = ""):
        self.config_folder = config_folder
        self.client_secret_file = client_secret_file
        self._token_path = Path(config_folder).expanduser() / "token.json"

    def _get_credentials(self):
        """Load credentials from token.json, refreshing if needed."""
        from google.auth.exceptions import RefreshError
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        if not self._token_path.exists():
            raise AuthenticationError("No token.json - run 'termcal auth' first")

        creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
            except RefreshError as e:
                raise AuthenticationError(f"Failed to refresh token: {e}") from e
            self._token_path.write_text(creds.to_json())
            self._token_path.chmod(0o600)

        if not creds.valid:
            raise AuthenticationError("Stored credentials are invalid - run 'termcal auth'")
        return creds

    def _build_service(self):
        """Build a Google Calendar API service."""
        from googleapiclient.discovery import build

        return build("calendar", "v3", credentials=self._get_credentials(), cache_discovery=False)

    def _execute(self, request, calendar_id: str | None = None):
        """Run an API request, turning transport failures into ProviderError."""
        from google.auth.exceptions import GoogleAuthError
        from googleapiclient.errors import HttpError

        try:
            return request.execute()
        except HttpError as e:
            raise ProviderError(f"Google Calendar API error {e.status_code}: {e.reason}", calendar_id) from e
        except GoogleAuthError as e:
            raise AuthenticationError(str(e), calendar_id) from e
        except OSError as e:
            raise ProviderError(f"Network error: {e}", calendar_id) from e

    def authenticate(self) -> None:
        """Run OAuth flow and store the token."""
        from google_auth_oauthlib.flow import InstalledAppFlow

        if not self.client_secret_file:
            raise AuthenticationError("No client secret file configured (GOOGLE_CLIENT_SECRET_FILE)")

        secret_path = Path(self.client_secret_file).expanduser()
        if not secret_path.exists():
            raise AuthenticationError(f"Client secret file not found: {secret_path}")

        flow = InstalledAppFlow.from_client_secrets_file(str(secret_path), SCOPES)
        creds = flow.run_local_server(port=0)

        self._token_path.parent.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())
        self._token_path.chmod(0o600)

    # ---- CalendarProvider ----

    def list_calendars(self) -> list[CalendarSource]:
        service = self._build_service()
        calendars = []
        page_token = None
        while True:
            result = self._execute(service.calendarList().list(pageToken=page_token))
            calendars.extend(to_calendar_source(entry) for entry in result.get("items", []))
            page_token = result.get("nextPageToken")
            if not page_token:
                break
        return sort_calendars(calendars)

    def list_events(
        self, calendar_id: str, range_start: datetime, range_end: datetime
    ) -> list[EventRecord]:
        service = self._build_service()
        events = []
        page_token = None
        while True:
            result = self._execute(
                service.events().list(
                    calendarId=calendar_id,
                    timeMin=range_start.isoformat(),
                    timeMax=range_end.isoformat(),
                    singleEvents=True,
                    orderBy="startTime",
                    pageToken=page_token,
                ),
                calendar_id,
            )
            for item in result.get("items", []):
                if item.get("status") == "cancelled":
                    continue
                try:
                    events.append(to_event_record(item, calendar_id))
                except ParseError as e:
                    logger.warning(f"Skipping event {item.get('id', '?')} in {calendar_id}: {e}")
            page_token = result.get("nextPageToken")
            if not page_token:
                break
        logger.debug(f"Fetched {len(events)} events from {calendar_id}")
        return events

    def create_event(self, calendar_id: str, event: EventRecord) -> EventRecord:
        body = {
            "summary": event.summary,
            "location": event.location,
            "description": event.description,
            **timing_body(event.timing),
        }
        service = self._build_service()
        created = self._execute(service.events().insert(calendarId=calendar_id, body=body), calendar_id)
        return to_event_record(created, calendar_id)

    def update_event(self, calendar_id: str, event_id: str, event: EventRecord) -> EventRecord:
        service = self._build_service()
        existing = self._execute(service.events().get(calendarId=calendar_id, eventId=event_id), calendar_id)
        existing.update(
            summary=event.summary,
            location=event.location,
            description=event.description,
        )
        for key, value in timing_body(event.timing).items():
            existing.setdefault(key, {}).update(value)
        updated = self._execute(
            service.events().update(calendarId=calendar_id, eventId=event_id, body=existing),
            calendar_id,
        )
        return to_event_record(updated, calendar_id)

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        service = self._build_service()
        self._execute(service.events().delete(calendarId=calendar_id, eventId=event_id), calendar_id)

    def set_calendar_selected(self, calendar_id: str, selected: bool) -> None:
        service = self._build_service()
        entry = self._execute(service.calendarList().get(calendarId=calendar_id), calendar_id)
        entry["selected"] = selected
        self._execute(service.calendarList().update(calendarId=calendar_id, body=entry), calendar_id)
