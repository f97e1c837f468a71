from fastapi import status

from .api_exception import APIException


class ValidationFailedError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"
    description = "One or more form fields are invalid. `errors` lists one message per invalid field."

    def __init__(self, errors: list[str]) -> None:
        super().__init__(errors=errors)


class RecaptchaRejectedError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "reCAPTCHA verification failed. Please try again."
    description = "The reCAPTCHA response was rejected by the verification service."


class RequestTooLargeError(APIException):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    message = "Request body too large"
    description = "The request body exceeds the maximum accepted size."


class RateLimitedError(APIException):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many form submissions. Please try again later."
    description = "Too many submissions from this address in the current window."

    def __init__(self, retry_after: float) -> None:
        super().__init__()
        self.headers = {"Retry-After": str(max(1, int(retry_after + 0.999)))}


class SubmissionFailedError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "An error occurred while processing your request. Please try again or contact us directly."
    description = "The submission could not be processed. `error_id` identifies the incident in the server logs."

    def __init__(self, error_id: str) -> None:
        super().__init__(error_id=error_id)
