from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
def root():
    return "Server is running!"


@router.get("/health")
def health_check():
    return {"status": "ok"}
