"""
HTTP routes proxying Cal.com for the booking form.

    GET  /api/availability   slots with enough remaining seats
    POST /api/bookings       create a booking
    GET  /api/lounges        lounges, therapies and destinations for the form
    GET  /health
"""

from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lounge_booking.catalog.lounges import DESTINATIONS, get_all_lounges, get_all_therapies
from lounge_booking.config import settings
from lounge_booking.errors import (
    BookingServiceError,
    ClientInputError,
    UnknownError,
    UpstreamError,
)
from lounge_booking.logging_context import (
    get_request_logger,
    new_request_id,
    set_request_id,
)
from lounge_booking.provider.availability import resolve_availability
from lounge_booking.provider.booking import submit_booking
from lounge_booking.provider.cal_client import CalClient
from lounge_booking.schemas.booking_schema import (
    AvailabilityResponse,
    BookingRequest,
    BookingResponse,
)

logger = get_request_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def get_cal_client() -> CalClient:
    """Dependency: a provider client, or a ConfigurationError when no key is set."""
    return CalClient.from_settings()


def create_app() -> FastAPI:
    app = FastAPI(title="Lounge Booking API", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.server.cors_origins.split(",")],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        set_request_id(request_id)
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.exception_handler(BookingServiceError)
    async def booking_service_error_handler(request: Request, exc: BookingServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        logger.info("Rejected malformed request: %s", fields)
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request", "details": fields},
        )

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": settings.service_name}

    @app.get("/api/lounges")
    async def list_lounges():
        return {
            "lounges": get_all_lounges(),
            "therapies": get_all_therapies(),
            "destinations": [{"id": k, "label": v} for k, v in DESTINATIONS.items()],
        }

    @app.get("/api/availability", response_model=AvailabilityResponse)
    async def availability(
        eventTypeId: Optional[str] = None,
        startTime: Optional[str] = None,
        endTime: Optional[str] = None,
        seats: int = Query(settings.booking.default_seats, ge=1),
        client: CalClient = Depends(get_cal_client),
    ):
        if not eventTypeId or not startTime or not endTime:
            raise ClientInputError(
                "Missing required query parameters: eventTypeId, startTime, endTime."
            )
        try:
            slots = await resolve_availability(client, eventTypeId, startTime, endTime, seats)
        except UpstreamError as exc:
            logger.error("Error fetching availability: %s", exc.message)
            return JSONResponse(
                status_code=500,
                content={
                    "message": "Error fetching availability",
                    "error": exc.message,
                    "providerStatus": exc.status_code,
                },
            )
        except BookingServiceError:
            raise
        except Exception as exc:
            logger.exception("Error fetching availability")
            raise UnknownError("Error fetching availability", details=str(exc)) from exc
        return AvailabilityResponse(available_slots=slots)

    @app.post("/api/bookings", response_model=BookingResponse)
    async def create_booking(
        body: BookingRequest, client: CalClient = Depends(get_cal_client)
    ):
        logger.info(
            "Booking request: destination=%s lounge=%s slot=%s party=%d",
            body.destination, body.lounge_id, body.appointment_slot,
            1 + len(body.additional_attendees),
        )
        try:
            confirmation = await submit_booking(client, body)
        except BookingServiceError:
            raise
        except Exception as exc:
            logger.exception("Error processing booking")
            raise UnknownError("Failed to process booking request", details=str(exc)) from exc
        # TODO: upsert the contact in Zoho CRM keyed by email/phone once CRM credentials exist.
        return BookingResponse(**confirmation.model_dump())

    return app


app = create_app()
