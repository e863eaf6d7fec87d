from fastapi import APIRouter, Response

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational.
    Used by load balancers and monitoring systems to determine service health.
    """

    return {"status": "ok"}


@router.api_route("/status", methods=["GET", "HEAD"], include_in_schema=False)
def status() -> Response:
    """Empty 200 for probes that only look at the status code."""

    return Response(status_code=200)
