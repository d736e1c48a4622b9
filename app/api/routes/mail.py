from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.adapters.mail.base import AbstractMailClient
from app.core.errors import AppError, MailAppError
from app.core.exception_handlers import fault_response
from app.core.rate_limit import apply_rate_limit, get_rate_limiter
from app.schemas.mail import validate_mail_request
from app.services.identity import issue_identity_cookies
from app.services.rate_limiter import RateLimiter

router = APIRouter(tags=["Mail"])


def get_mail_client(request: Request) -> AbstractMailClient:
    """FastAPI dependency returning the application's mail client."""
    return request.app.state.mail_client


@router.post("/mail")
async def send_mail(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    mail_client: AbstractMailClient = Depends(get_mail_client),
) -> JSONResponse:
    """Contact form submission endpoint.

    Body: ``{"name", "email", "subject", "message"}``.

    Flow: parse JSON -> rate limit -> validate -> send -> issue identity
    cookies. Rate limit headers are attached to every response produced
    after the limiter has counted the request.

    Returns:
        JSONResponse: The mail client's result, with fresh identity cookies.

    Raises:
        AppError: Mapped to 400/422/429/500 by the global handlers.
    """
    headers: dict[str, str] = {}
    try:
        body = await request.json()

        headers = apply_rate_limit(request, limiter)

        mail_request = validate_mail_request(body)

        result = await mail_client.send(
            mail_request.name,
            mail_request.email,
            mail_request.subject,
            mail_request.message,
        )
        if result["status"] >= 400:
            raise MailAppError(
                code="mail_delivery_failed",
                message=result.get("message") or "Failed to send email",
                details={"http_status": result["status"]},
            )

        response = JSONResponse(dict(result), status_code=result["status"], headers=headers or None)
        return issue_identity_cookies(response)
    except AppError as exc:
        if headers and not exc.headers:
            exc.headers = headers
        raise
    except Exception as exc:
        return fault_response(exc, headers=headers)
